"""Rejection types raised by the timeline engine.

Every rejection is local and recoverable: the store snapshot the caller passed in is
left untouched, and ``str(exc)`` is a message fit for showing to the analyst.
"""


class TimelineError(ValueError):
    """Base class for every rejected timeline operation."""


class InvalidInterval(TimelineError):
    """Start/end are non-numeric, negative, or inverted."""


class OverAllocatedBreakdown(TimelineError):
    """Manual + auto + walk + waiting exceeds the segment duration beyond tolerance."""

    def __init__(self, total, duration, tolerance):
        self.total = total
        self.duration = duration
        self.tolerance = tolerance
        super().__init__(
            f"Breakdown total {total:.2f}s exceeds segment duration {duration:.2f}s "
            f"(tolerance {tolerance}s)."
        )


class NoActiveSegment(TimelineError):
    """A stopwatch or quick-categorize action was invoked with nothing selected or active."""


class OutOfBoundsCut(TimelineError):
    """Split point is not strictly inside the segment."""

    def __init__(self, segment_id, cut_time, start_time, end_time):
        self.segment_id = segment_id
        self.cut_time = cut_time
        super().__init__(
            f"Cut time {cut_time:.2f}s must be within the measurement "
            f"({start_time:.2f}s - {end_time:.2f}s)."
        )


class UnknownSegment(TimelineError, KeyError):
    """No segment with the given id exists in the snapshot."""

    def __init__(self, segment_id):
        self.segment_id = segment_id
        super().__init__(f"No measurement with id '{segment_id}'.")

    def __str__(self):
        return self.args[0]
