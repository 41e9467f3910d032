from dataclasses import dataclass
from datetime import datetime
from tm.common.logger import get_component_logger

log = get_component_logger("history")

# Default number of collection snapshots kept for undo.
DEFAULT_LIMIT = 50

# One whole-collection snapshot, tagged with why it was taken (e.g. "drag", "split", "stopwatch:manual").
@dataclass(frozen=True)
class Snapshot:
    segments: tuple
    reason: str
    taken_at: datetime


# Bounded undo/redo stack of whole-collection snapshots. Segments are immutable, so snapshots are shared rather than
# deep-copied. The cursor always points at the snapshot that matches the store's current state.
class SnapshotHistory:

    def __init__(self, initial=(), limit=DEFAULT_LIMIT):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._entries = [Snapshot(tuple(initial), "initial", datetime.now())]
        self._cursor = 0

    @property
    def current(self):
        return self._entries[self._cursor].segments

    @property
    def can_undo(self):
        return self._cursor > 0

    @property
    def can_redo(self):
        return self._cursor < len(self._entries) - 1

    def __len__(self):
        return len(self._entries)

    # Records a new snapshot after the cursor. Anything that was redoable is dropped, and the oldest entry falls off
    # once the limit is reached.
    def record(self, segments, reason="edit"):
        del self._entries[self._cursor + 1:]
        self._entries.append(Snapshot(tuple(segments), reason, datetime.now()))
        if len(self._entries) > self.limit:
            dropped = len(self._entries) - self.limit
            del self._entries[:dropped]
        self._cursor = len(self._entries) - 1
        log.debug(f"Recorded snapshot '{reason}' ({len(segments)} segments), history depth {len(self._entries)}")

    # Step back one snapshot and return it, or None when there's nothing to undo.
    def undo(self):
        if not self.can_undo:
            return None
        self._cursor -= 1
        log.debug(f"Undo -> snapshot {self._cursor} ('{self._entries[self._cursor].reason}')")
        return self.current

    def redo(self):
        if not self.can_redo:
            return None
        self._cursor += 1
        log.debug(f"Redo -> snapshot {self._cursor} ('{self._entries[self._cursor].reason}')")
        return self.current

    # Drops everything and starts over from `segments`, e.g. after the host loads another project.
    def reset(self, segments=()):
        self._entries = [Snapshot(tuple(segments), "reset", datetime.now())]
        self._cursor = 0
