from tm.common.errors import NoActiveSegment
from tm.common.logger import get_component_logger
from tm.core import store
from tm.core.measurement import BREAKDOWN_FIELDS

log = get_component_logger("stopwatch")

CATEGORIES = tuple(BREAKDOWN_FIELDS)


# Accumulates manual/auto/walk/waiting time onto segments. Unlike a wall-clock timer this reads *video* time from the
# clock, so time only accrues while the media advances. Running timers are keyed by (segment_id, category) -> the
# clock time they were started at; presence of a key means running. Timers are transient and never persisted.
class StopwatchAccumulator:

    def __init__(self, clock):
        self.clock = clock
        self._running = {}

    def is_running(self, segment_id, category):
        return (segment_id, category) in self._running

    # Categories currently running for one segment, mapped to their start time.
    def running_for(self, segment_id):
        return {cat: t for (sid, cat), t in self._running.items() if sid == segment_id}

    # How long a running timer has been going, for live display. 0 when stopped.
    def elapsed(self, segment_id, category):
        started_at = self._running.get((segment_id, category))
        if started_at is None:
            return 0.0
        return max(0.0, self.clock.current_time() - started_at)

    # Records the current clock time as the start. Starting an already-running timer re-keys it to now, dropping the
    # interval accrued so far. Accumulation only makes sense while the clock moves, so a paused clock gets started.
    def start(self, segment_id, category):
        self._check(segment_id, category)
        now = self.clock.current_time()
        if self.is_running(segment_id, category):
            log.debug(f"Restarted '{category}' stopwatch on id={segment_id} at {now:.3f}s")
        else:
            log.debug(f"Started '{category}' stopwatch on id={segment_id} at {now:.3f}s")
        self._running[(segment_id, category)] = now
        if not self.clock.is_playing():
            self.clock.toggle_play()
        return now

    # Stops the timer and folds the elapsed clock time into the segment's <category>_time. Returns the new snapshot,
    # or the snapshot unchanged if the timer wasn't running.
    def stop(self, segments, segment_id, category):
        self._check(segment_id, category)
        started_at = self._running.get((segment_id, category))
        if started_at is None:
            return tuple(segments)

        segment = store.require(segments, segment_id)
        delta = max(0.0, self.clock.current_time() - started_at)
        attr = BREAKDOWN_FIELDS[category]
        updated = segment.evolve(**{attr: max(0.0, getattr(segment, attr) + delta)})
        del self._running[(segment_id, category)]
        log.debug(f"Stopped '{category}' stopwatch on id={segment_id}, +{delta:.3f}s -> {getattr(updated, attr):.3f}s")
        return store.replace_one(segments, updated)

    # Which segment a stopwatch key applies to: the one under the playhead, else the selected one. Raises
    # NoActiveSegment when neither exists in the snapshot.
    def target(self, segments, selected_id=None):
        active = store.active_at(segments, self.clock.current_time())
        segment_id = active.id if active is not None else selected_id
        if segment_id is None or store.find(segments, segment_id) is None:
            log.info("Rejected stopwatch: no active or selected element")
            raise NoActiveSegment("No active element at this time. Select an element or play the video inside one.")
        return segment_id

    # Quick-categorize: flips the timer on the target segment. Returns (new_snapshot, segment_id, now_running).
    def toggle(self, segments, category, selected_id=None):
        segment_id = self.target(segments, selected_id)

        if self.is_running(segment_id, category):
            return self.stop(segments, segment_id, category), segment_id, False
        self.start(segment_id, category)
        return tuple(segments), segment_id, True

    # Stops every running timer on the snapshot, e.g. before the host saves the project.
    def stop_all(self, segments):
        for segment_id, category in list(self._running):
            if store.find(segments, segment_id) is None:
                del self._running[(segment_id, category)]
                continue
            segments = self.stop(segments, segment_id, category)
        return tuple(segments)

    # Drops any timers for a segment that no longer exists (deleted or split).
    def discard(self, segment_id):
        for key in [k for k in self._running if k[0] == segment_id]:
            del self._running[key]

    def _check(self, segment_id, category):
        if segment_id is None:
            raise NoActiveSegment("No element selected for the stopwatch.")
        if category not in BREAKDOWN_FIELDS:
            raise ValueError(f"Unknown stopwatch category '{category}'")
