"""Interval editor: direct-manipulation algorithms over a segment snapshot.

Every operation takes the latest snapshot as a parameter and returns a new one; nothing
here holds on to a collection between calls. Pointer positions are pixels along a
track of width ``W`` that spans ``[0, media duration]``.
"""

from __future__ import annotations

from tm.common.errors import InvalidInterval, OutOfBoundsCut, TimelineError
from tm.common.logger import get_component_logger
from tm.core import store
from tm.core.measurement import BREAKDOWN_FIELDS, CATEGORIES, THERBLIGS, VALUE_ADDED, Measurement
from tm.core.validation import BREAKDOWN_TOLERANCE, UNDER_ALLOCATION_TOLERANCE, check_breakdown, parse_interval
from tm.util import clamp, new_id, parse_seconds, parse_seconds_or

log = get_component_logger("editor")

MOVE = "move"
RESIZE_LEFT = "resize-left"
RESIZE_RIGHT = "resize-right"
DRAG_MODES = (MOVE, RESIZE_LEFT, RESIZE_RIGHT)

MIN_DRAG_DURATION = 0.1
AUTO_APPEND_MIN_DURATION = 0.5
MARK_END_MIN_DURATION = 0.01


#region === Pixel <-> time ===

def pixel_to_time(px, width, duration):
    if width <= 0 or duration <= 0:
        return 0.0
    return (px / width) * duration


def time_to_pixel(t, width, duration):
    if width <= 0 or duration <= 0:
        return 0.0
    return (t / duration) * width

#endregion === Pixel <-> time ===

#region === Drag / resize ===

def drag_interval(mode, original_start, original_end, delta_t, duration, min_duration=MIN_DRAG_DURATION):
    """New ``(start, end)`` for a drag of ``delta_t`` seconds, clamped to ``[0, duration]``.

    A resize never leaves less than ``min_duration``; if honouring that would push the
    dragged edge off the media, the other edge is pulled inward instead. A move keeps
    the segment's length and stops at either end of the media.
    """
    if mode not in DRAG_MODES:
        raise ValueError(f"Unknown drag mode '{mode}'")
    min_duration = min(min_duration, duration)
    start, end = original_start, original_end

    if mode == MOVE:
        length = original_end - original_start
        start, end = original_start + delta_t, original_end + delta_t
        if start < 0:
            start, end = 0.0, length
        if end > duration:
            start, end = max(0.0, duration - length), duration
        return start, end

    if mode == RESIZE_LEFT:
        start = clamp(original_start + delta_t, 0.0, duration)
        if end - start < min_duration:
            start = end - min_duration
            if start < 0:
                start, end = 0.0, min_duration
        return start, end

    end = clamp(original_end + delta_t, 0.0, duration)
    if end - start < min_duration:
        end = start + min_duration
        if end > duration:
            start, end = duration - min_duration, duration
    return start, end


class DragController:
    """One drag gesture: pointer down, any number of moves, then release.

    Moves only produce previews. The store is touched once, by :meth:`finish`, which
    applies the final interval to whatever snapshot the caller hands it at release.
    """

    def __init__(self, track_width, media_duration, min_duration=MIN_DRAG_DURATION):
        self.track_width = track_width
        self.media_duration = media_duration
        self.min_duration = min_duration
        self.segment_id = None
        self.mode = None
        self.start_x = 0.0
        self.original_start = 0.0
        self.original_end = 0.0
        self.preview_start = None
        self.preview_end = None

    @property
    def active(self):
        return self.segment_id is not None

    def start(self, segment, mode, pointer_x):
        """Begin dragging ``segment``; captures its interval and the pointer position."""
        if mode not in DRAG_MODES:
            raise ValueError(f"Unknown drag mode '{mode}'")
        self.segment_id = segment.id
        self.mode = mode
        self.start_x = pointer_x
        self.original_start = segment.start_time
        self.original_end = segment.end_time
        self.preview_start = segment.start_time
        self.preview_end = segment.end_time
        log.debug(f"Drag '{mode}' started on id={segment.id} at x={pointer_x}")

    def move(self, pointer_x):
        """Update the preview for the current pointer position and return ``(start, end)``."""
        if not self.active:
            raise RuntimeError("No drag in progress")
        delta_t = pixel_to_time(pointer_x - self.start_x, self.track_width, self.media_duration)
        self.preview_start, self.preview_end = drag_interval(
            self.mode, self.original_start, self.original_end, delta_t,
            self.media_duration, self.min_duration)
        return self.preview_start, self.preview_end

    def preview(self, segments):
        """The snapshot as it would look if the drag were released now (not committed)."""
        if not self.active:
            return tuple(segments)
        return self._apply(segments)

    def finish(self, segments, pointer_x=None):
        """Commit the drag onto the latest snapshot and end the gesture."""
        if not self.active:
            raise RuntimeError("No drag in progress")
        if pointer_x is not None:
            self.move(pointer_x)
        try:
            result = self._apply(segments)
        finally:
            segment_id = self.segment_id
            self._clear()
        log.debug(f"Drag committed on id={segment_id}")
        return result

    def cancel(self):
        if self.active:
            log.debug(f"Drag cancelled on id={self.segment_id}")
        self._clear()

    def _apply(self, segments):
        current = store.require(segments, self.segment_id)
        return store.replace_one(segments, current.evolve(start_time=self.preview_start, end_time=self.preview_end))

    def _clear(self):
        self.segment_id = None
        self.mode = None
        self.preview_start = None
        self.preview_end = None

#endregion === Drag / resize ===

#region === Split ===

def split_segment(segments, segment_id, cut_time):
    """Replace one segment with two halves meeting at ``cut_time``, re-sorted by start."""
    original = store.require(segments, segment_id)
    if not (original.start_time < cut_time < original.end_time):
        log.info(f"Rejected cut at {cut_time:.3f}s outside id={segment_id}")
        raise OutOfBoundsCut(segment_id, cut_time, original.start_time, original.end_time)

    first = original.evolve(id=new_id(), end_time=cut_time, element_name=f"{original.element_name} (1)")
    second = original.evolve(id=new_id(), start_time=cut_time, element_name=f"{original.element_name} (2)")
    remaining = tuple(m for m in segments if m.id != segment_id)
    log.debug(f"Split id={segment_id} at {cut_time:.3f}s into {first.id} / {second.id}")
    return store.sorted_by_start(remaining + (first, second))

#endregion === Split ===

#region === Creating segments ===

def append_interval(segments, end_hint, media_duration, min_duration=AUTO_APPEND_MIN_DURATION):
    """``(start, end)`` for a segment contiguous with the latest end time.

    Start is the frontier (0 on an empty timeline). End is ``end_hint``, raised to
    ``start + min_duration`` when it isn't past the frontier, then capped at the media
    duration.
    """
    start = store.frontier(segments)
    end = end_hint
    if end <= start:
        end = start + min_duration
    if end > media_duration:
        end = media_duration
    if end <= start:
        raise InvalidInterval("The timeline is already covered up to the end of the video.")
    return start, end


def auto_append(segments, click_time, media_duration, min_duration=AUTO_APPEND_MIN_DURATION, **fields):
    """Click on empty track space: append a segment from the frontier up to the click."""
    start, end = append_interval(segments, click_time, media_duration, min_duration)
    measurement = Measurement(start_time=start, end_time=end, **fields)
    log.debug(f"Auto-appended [{start:.3f}, {end:.3f}] from click at {click_time:.3f}s")
    return tuple(segments) + (measurement,), measurement


def quick_add(segments, current_time, media_duration, counter, cycle=1, min_duration=AUTO_APPEND_MIN_DURATION):
    """Keyboard quick-add: same frontier rule as auto-append, ending at the playhead."""
    return auto_append(
        segments, current_time, media_duration, min_duration,
        element_name=f"Element {counter}", category=VALUE_ADDED, rating=100, cycle=cycle)


class MarkSession:
    """Two-step "mark start" / "mark end" creation of a segment."""

    def __init__(self, min_duration=MARK_END_MIN_DURATION):
        self.min_duration = min_duration
        self.pending_start = None

    @property
    def pending(self):
        return self.pending_start is not None

    def mark_start(self, t):
        self.pending_start = max(0.0, float(t))
        log.debug(f"Pending start marked at {self.pending_start:.3f}s")
        return self.pending_start

    def mark_end(self, segments, current_time, media_duration=None, **fields):
        """Commit ``[pending start, current time]``, nudging the end past the start if needed."""
        if not self.pending:
            raise InvalidInterval("Mark a start time before marking the end.")
        start = self.pending_start
        end = max(current_time, start + self.min_duration)
        if media_duration is not None and end > media_duration:
            raise InvalidInterval("Finish time is past the end of the video.")
        measurement = Measurement(start_time=start, end_time=end, **fields)
        self.pending_start = None
        log.debug(f"Marked segment [{start:.3f}, {end:.3f}] '{measurement.element_name}'")
        return tuple(segments) + (measurement,), measurement

    def cancel(self):
        self.pending_start = None

#endregion === Creating segments ===

#region === Explicit edits ===

def apply_edit(segments, segment_id, media_duration=None, tolerance=BREAKDOWN_TOLERANCE,
               under_tolerance=UNDER_ALLOCATION_TOLERANCE, **fields):
    """Apply an edit-dialog submission to one segment.

    Values may be raw text from input fields. Start/finish must parse and form a valid
    interval; the breakdown may not exceed the duration beyond ``tolerance``. Returns
    ``(new_segments, warnings)``; on rejection the exception propagates and the
    caller's snapshot is untouched.
    """
    current = store.require(segments, segment_id)
    changes = {}

    start, end = parse_interval(fields.pop("start_time", current.start_time),
                                fields.pop("end_time", current.end_time))
    if media_duration is not None and end > media_duration:
        raise InvalidInterval("Finish time is past the end of the video.")
    changes["start_time"], changes["end_time"] = start, end

    for attr in BREAKDOWN_FIELDS.values():
        if attr in fields:
            changes[attr] = max(0.0, parse_seconds_or(fields.pop(attr), 0.0))

    if "category" in fields:
        category = fields.pop("category")
        if category not in CATEGORIES:
            raise TimelineError(f"Unknown category '{category}'.")
        changes["category"] = category
    if "therblig" in fields:
        therblig = (fields.pop("therblig") or "").strip().upper()
        if therblig and therblig not in THERBLIGS:
            raise TimelineError(f"Unknown therblig code '{therblig}'.")
        changes["therblig"] = therblig
    if "cycle" in fields:
        cycle = parse_seconds(fields.pop("cycle"))
        changes["cycle"] = int(cycle) if cycle is not None and cycle >= 1 else 1
    if "rating" in fields:
        rating = parse_seconds(fields.pop("rating"))
        if rating is not None:
            changes["rating"] = int(round(rating))
    for attr in ("element_name", "description", "color"):
        if attr in fields:
            changes[attr] = fields.pop(attr)
    if fields:
        raise TypeError(f"Unexpected measurement fields: {', '.join(sorted(fields))}")

    updated = current.evolve(**changes)
    warnings = check_breakdown(updated.duration, updated.manual_time, updated.auto_time,
                               updated.walk_time, updated.waiting_time, tolerance=tolerance,
                               under_tolerance=under_tolerance)
    log.debug(f"Edited id={segment_id}: {', '.join(sorted(changes))}")
    return store.replace_one(segments, updated), warnings

#endregion === Explicit edits ===

#region === Reordering ===

def move_up(segments, segment_id):
    """Swap a segment with its predecessor in store order (no-op at the top)."""
    segments = list(segments)
    index = segments.index(store.require(segments, segment_id))
    if index > 0:
        segments[index - 1], segments[index] = segments[index], segments[index - 1]
    return tuple(segments)


def move_down(segments, segment_id):
    segments = list(segments)
    index = segments.index(store.require(segments, segment_id))
    if index < len(segments) - 1:
        segments[index], segments[index + 1] = segments[index + 1], segments[index]
    return tuple(segments)

#endregion === Reordering ===
