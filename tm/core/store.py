"""Segment store: the authoritative ordered collection of measurements.

The collection is a flat tuple. Every mutation builds a new tuple and swaps it in
whole, so renderers and the engine reconcile by identity rather than by patch. The
module-level functions are pure and work on any snapshot; :class:`SegmentStore` holds
the current snapshot plus its undo history.
"""

from tm.common.errors import InvalidInterval, UnknownSegment
from tm.common.logger import get_component_logger
from tm.core.history import DEFAULT_LIMIT, SnapshotHistory
from tm.core.measurement import Measurement, NON_VALUE_ADDED

log = get_component_logger("store")

# Defaults applied by SegmentStore.add when the caller leaves a field out.
ADD_DEFAULTS = {
    "category": NON_VALUE_ADDED,
    "rating": 0,
    "cycle": 1,
}


#region === Pure snapshot helpers ===

def find(segments, segment_id):
    for m in segments:
        if m.id == segment_id:
            return m
    return None


def require(segments, segment_id):
    m = find(segments, segment_id)
    if m is None:
        raise UnknownSegment(segment_id)
    return m


def active_at(segments, t):
    """First segment (in store order) whose closed interval contains ``t``."""
    for m in segments:
        if m.contains(t):
            return m
    return None


def frontier(segments):
    """Latest end time across all segments, or 0 for an empty timeline."""
    return max((m.end_time for m in segments), default=0.0)


def replace_one(segments, updated):
    """Swap in ``updated`` for the segment with the same id, keeping order."""
    require(segments, updated.id)
    return tuple(updated if m.id == updated.id else m for m in segments)


def without(segments, segment_id):
    require(segments, segment_id)
    return tuple(m for m in segments if m.id != segment_id)


def sorted_by_start(segments):
    return tuple(sorted(segments, key=lambda m: m.start_time))


def check_invariants(segments):
    """Raise InvalidInterval if any segment breaks ``0 <= start < end`` or ids repeat."""
    seen = set()
    for m in segments:
        if m.start_time < 0 or m.start_time >= m.end_time:
            raise InvalidInterval(
                f"Measurement '{m.element_name}' has an invalid interval "
                f"({m.start_time:.2f}s - {m.end_time:.2f}s)."
            )
        if m.id in seen:
            raise InvalidInterval(f"Duplicate measurement id '{m.id}'.")
        seen.add(m.id)

#endregion === Pure snapshot helpers ===


class SegmentStore:
    """Holds the current snapshot and routes every change through ``replace_all``."""

    def __init__(self, segments=(), history_limit=DEFAULT_LIMIT):
        segments = tuple(segments)
        check_invariants(segments)
        self._segments = segments
        self.history = SnapshotHistory(segments, limit=history_limit)

    def __len__(self):
        return len(self._segments)

    def __iter__(self):
        return iter(self._segments)

    def get_all(self):
        return self._segments

    def get(self, segment_id):
        return find(self._segments, segment_id)

    def active_at(self, t):
        return active_at(self._segments, t)

    # Builds a Measurement from a partial dict/kwargs, appends it, and returns it.
    def add(self, partial=None, **fields):
        if isinstance(partial, Measurement):
            measurement = partial.evolve(**fields) if fields else partial
        else:
            data = dict(partial or {})
            data.update(fields)
            for key, default in ADD_DEFAULTS.items():
                data.setdefault(key, default)
            data.pop("duration", None)
            measurement = Measurement.from_dict(data)
        self.replace_all(self._segments + (measurement,), reason="add")
        log.debug(f"Added measurement '{measurement.element_name}' [{measurement.start_time:.3f}, "
                  f"{measurement.end_time:.3f}] id={measurement.id}")
        return measurement

    def remove(self, segment_id):
        result = self.replace_all(without(self._segments, segment_id), reason="remove")
        log.debug(f"Removed measurement id={segment_id}")
        return result

    def replace_all(self, segments, reason="replace"):
        """Swap in a whole new collection. Passing the current snapshot back is a no-op."""
        segments = tuple(segments)
        if segments == self._segments:
            return self._segments
        check_invariants(segments)
        self._segments = segments
        self.history.record(segments, reason)
        return self._segments

    def undo(self):
        restored = self.history.undo()
        if restored is not None:
            self._segments = restored
        return self._segments

    def redo(self):
        restored = self.history.redo()
        if restored is not None:
            self._segments = restored
        return self._segments

    # Load a collection from the persistence collaborator without making it undoable.
    def load(self, segments):
        segments = tuple(segments)
        check_invariants(segments)
        self._segments = segments
        self.history.reset(segments)
        log.info(f"Loaded {len(segments)} measurements into the store")
        return self._segments
