"""Validation rules for measurements.

Two kinds of checks live here. Hard checks (``parse_interval``, ``check_breakdown``)
raise and block an explicit edit. Advisory checks (``validate`` and the helpers it
uses) only return warnings and suggestions for the UI to surface.
"""

import difflib
from collections import Counter
from dataclasses import dataclass, field

from tm.common.errors import InvalidInterval, OverAllocatedBreakdown
from tm.common.logger import get_component_logger
from tm.core.measurement import NON_VALUE_ADDED, VALUE_ADDED, WASTE
from tm.util import parse_seconds

log = get_component_logger("validation")

BREAKDOWN_TOLERANCE = 0.01
UNDER_ALLOCATION_TOLERANCE = 0.05
SHORT_DURATION = 0.1
LONG_DURATION = 60.0
DUPLICATE_NAME_SIMILARITY = 0.9
DUPLICATE_DURATION_WINDOW = 0.5

# Keyword hints for category suggestions, checked in order.
_CATEGORY_KEYWORDS = (
    (WASTE, ("wait", "delay", "idle", "pause", "search", "rework", "looking for")),
    (VALUE_ADDED, ("assemble", "insert", "weld", "drill", "cut", "fasten", "screw", "attach", "machine", "process")),
    (NON_VALUE_ADDED, ("walk", "reach", "move", "carry", "transport", "pick", "place", "grasp", "check", "inspect")),
)

_THERBLIG_KEYWORDS = (
    ("TE", ("reach", "extend")),
    ("TL", ("grasp", "grab", "pick", "take")),
    ("PP", ("pre-position", "prepare")),
    ("DA", ("disassemble", "take apart")),
    ("G", ("assemble", "put together")),
    ("A", ("use", "operate", "apply")),
    ("RL", ("release", "let go", "drop")),
    ("TR", ("transport", "move", "carry")),
    ("H", ("hold", "support")),
    ("UD", ("unavoidable delay", "wait")),
    ("AD", ("avoidable delay", "idle")),
    ("P", ("position", "place", "locate")),
    ("I", ("inspect", "check", "examine")),
    ("PN", ("plan", "think", "decide")),
    ("ST", ("search", "look for")),
    ("S", ("select", "choose")),
    ("F", ("find",)),
)


@dataclass(frozen=True)
class ValidationWarning:
    type: str
    message: str
    severity: str = "warning"


@dataclass(frozen=True)
class Suggestion:
    type: str
    message: str
    value: str


@dataclass
class ValidationReport:
    warnings: list = field(default_factory=list)
    suggestions: list = field(default_factory=list)

    @property
    def clean(self):
        return not self.warnings


#region === Hard checks ===

def parse_interval(start, end):
    """Parse start/end typed by the analyst, rejecting anything that can't form an interval."""
    start_time = parse_seconds(start)
    end_time = parse_seconds(end)
    if start_time is None or end_time is None:
        raise InvalidInterval("Start and finish times must be numbers.")
    if start_time < 0 or end_time < 0:
        raise InvalidInterval("Start and finish times must be positive.")
    if start_time >= end_time:
        raise InvalidInterval("Start time must be less than finish time.")
    return start_time, end_time


def check_breakdown(duration, manual=0.0, auto=0.0, walk=0.0, waiting=0.0,
                    tolerance=BREAKDOWN_TOLERANCE, under_tolerance=UNDER_ALLOCATION_TOLERANCE):
    """Reject an over-allocated breakdown; return advisory warnings for an under-allocated one.

    An all-zero breakdown is treated as "not categorised yet" and produces no warning.
    """
    total = manual + auto + walk + waiting
    if total > duration + tolerance:
        raise OverAllocatedBreakdown(total, duration, tolerance)
    warnings = []
    if total > 0 and duration - total > under_tolerance:
        message = f"Breakdown sum ({total:.2f}s) is less than duration ({duration:.2f}s)."
        log.warning(message)
        warnings.append(ValidationWarning("under_allocated", message, "info"))
    return warnings

#endregion === Hard checks ===

#region === Advisory checks ===

def duration_warnings(duration, short=SHORT_DURATION, long=LONG_DURATION):
    warnings = []
    if duration < short:
        warnings.append(ValidationWarning(
            "duration", f"Duration is very short (< {short}s). Is this correct?", "info"))
    if duration > long:
        warnings.append(ValidationWarning(
            "duration", f"Duration is very long (> {long:g}s). Consider breaking into smaller elements.", "warning"))
    return warnings


def similarity(a, b):
    """Case-insensitive similarity in [0, 1]; two empty names count as identical."""
    a, b = (a or "").lower(), (b or "").lower()
    if not a and not b:
        return 1.0
    return difflib.SequenceMatcher(None, a, b).ratio()


def detect_duplicates(candidate, existing, threshold=DUPLICATE_NAME_SIMILARITY,
                      window=DUPLICATE_DURATION_WINDOW):
    return [
        m for m in existing
        if m.id != candidate.id
        and similarity(candidate.element_name, m.element_name) > threshold
        and abs(candidate.duration - m.duration) < window
        and candidate.category == m.category
    ]


def suggest_category(element_name, existing=()):
    lowered = (element_name or "").lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(k in lowered for k in keywords):
            return category

    # Fall back to whatever similar historical elements were filed under.
    similar = [m.category for m in existing if similarity(element_name, m.element_name) > 0.7]
    if similar:
        return Counter(similar).most_common(1)[0][0]
    return NON_VALUE_ADDED


def suggest_therblig(element_name):
    lowered = (element_name or "").lower()
    for code, keywords in _THERBLIG_KEYWORDS:
        if any(k in lowered for k in keywords):
            return code
    return ""


def element_name_suggestions(text, existing, limit=5, min_similarity=0.3):
    """Autocomplete: known element names ranked by similarity to what's been typed."""
    if not text or len(text) < 2:
        return []
    names = dict.fromkeys(m.element_name for m in existing)
    scored = [(similarity(text, name), name) for name in names]
    scored = [item for item in scored if item[0] > min_similarity]
    scored.sort(key=lambda item: item[0], reverse=True)
    return [name for _, name in scored[:limit]]


def validate(candidate, existing, short=SHORT_DURATION, long=LONG_DURATION):
    """Advisory report for a candidate segment before it's committed. Never raises."""
    report = ValidationReport()

    duplicates = detect_duplicates(candidate, existing)
    if duplicates:
        report.warnings.append(ValidationWarning(
            "duplicate", f'Similar measurement found: "{duplicates[0].element_name}"'))

    report.warnings.extend(duration_warnings(candidate.duration, short, long))

    if not candidate.category:
        value = suggest_category(candidate.element_name, existing)
        report.suggestions.append(Suggestion("category", f"Suggested category: {value}", value))

    if not candidate.therblig:
        value = suggest_therblig(candidate.element_name)
        if value:
            report.suggestions.append(Suggestion("therblig", f"Suggested Therblig: {value}", value))

    if report.warnings:
        log.info(f"Validation for '{candidate.element_name}' raised {len(report.warnings)} warning(s): "
                 f"{', '.join(w.type for w in report.warnings)}")
    return report

#endregion === Advisory checks ===
