"""Measurement (segment) entity and its fixed vocabularies."""

from dataclasses import dataclass, field, fields, replace
from typing import Optional

from tm.common.errors import InvalidInterval, TimelineError
from tm.util import new_id, parse_seconds, parse_seconds_or

VALUE_ADDED = "Value-added"
NON_VALUE_ADDED = "Non value-added"
WASTE = "Waste"
CATEGORIES = (VALUE_ADDED, NON_VALUE_ADDED, WASTE)

# Therblig method codes and their names.
THERBLIGS = {
    "TE": "Transport Empty",
    "TL": "Transport Loaded",
    "PP": "Pre-position",
    "G": "Grasp",
    "A": "Assemble",
    "DA": "Disassemble",
    "RL": "Release Load",
    "TR": "Transport",
    "H": "Hold",
    "UD": "Unavoidable Delay",
    "AD": "Avoidable Delay",
    "P": "Position",
    "I": "Inspect",
    "PN": "Plan",
    "ST": "Search",
    "S": "Select",
    "F": "Find",
}

# Stopwatch / breakdown categories, mapped to the Measurement field they accumulate into.
BREAKDOWN_FIELDS = {
    "manual": "manual_time",
    "auto": "auto_time",
    "walk": "walk_time",
    "waiting": "waiting_time",
}

DEFAULT_ELEMENT_NAME = "New Element"

# camelCase keys used by the host application's project files <-> our field names.
_WIRE_NAMES = {
    "id": "id",
    "elementName": "element_name",
    "category": "category",
    "therblig": "therblig",
    "startTime": "start_time",
    "endTime": "end_time",
    "manualTime": "manual_time",
    "autoTime": "auto_time",
    "walkTime": "walk_time",
    "waitingTime": "waiting_time",
    "rating": "rating",
    "cycle": "cycle",
    "description": "description",
    "color": "color",
}


@dataclass(frozen=True)
class Measurement:
    """One timed work element on the timeline.

    Instances are immutable; every edit produces a new instance through
    :meth:`evolve`. ``duration`` is derived from the interval, never stored, so it
    cannot drift out of sync with ``start_time``/``end_time``.
    """

    start_time: float
    end_time: float
    id: str = field(default_factory=new_id)
    element_name: str = DEFAULT_ELEMENT_NAME
    category: str = NON_VALUE_ADDED
    therblig: str = ""
    manual_time: float = 0.0
    auto_time: float = 0.0
    walk_time: float = 0.0
    waiting_time: float = 0.0
    rating: int = 100
    cycle: int = 1
    description: str = ""
    color: Optional[str] = None

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def breakdown_total(self) -> float:
        return self.manual_time + self.auto_time + self.walk_time + self.waiting_time

    def contains(self, t: float) -> bool:
        return self.start_time <= t <= self.end_time

    def evolve(self, **changes) -> "Measurement":
        return replace(self, **changes)

    def breakdown(self, category: str) -> float:
        return getattr(self, BREAKDOWN_FIELDS[category])

    def to_dict(self) -> dict:
        data = {wire: getattr(self, attr) for wire, attr in _WIRE_NAMES.items()}
        data["duration"] = self.duration
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Measurement":
        """Build from a camelCase (host) or snake_case dict; ``duration`` is ignored."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            attr = _WIRE_NAMES.get(key, key)
            if attr in known and value is not None:
                kwargs[attr] = value
        # Older project files stored missing breakdowns as blanks.
        for attr in BREAKDOWN_FIELDS.values():
            kwargs[attr] = max(0.0, parse_seconds_or(kwargs.get(attr), 0.0))
        for attr in ("start_time", "end_time"):
            value = parse_seconds(kwargs.get(attr))
            if value is None:
                raise InvalidInterval(f"Measurement needs a numeric {attr.replace('_', ' ')}.")
            kwargs[attr] = value
        rating = parse_seconds(kwargs.get("rating", 100))
        if rating is None:
            raise TimelineError(f"Measurement rating must be a number, got '{kwargs['rating']}'.")
        kwargs["rating"] = int(round(rating))
        cycle = parse_seconds(kwargs.get("cycle", 1))
        kwargs["cycle"] = int(cycle) if cycle is not None and cycle >= 1 else 1
        return cls(**kwargs)
