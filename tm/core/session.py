"""Timeline session: wires one clock to the store, editor and stopwatches.

The session is what a host UI talks to. It owns the per-analysis transient state
(selection, pending mark, running stopwatches, current cycle) and funnels every change
into a whole-collection replace on the store. All handlers read the store's latest
snapshot at call time, never one captured earlier.
"""

from tm.common.errors import InvalidInterval, NoActiveSegment
from tm.common.logger import get_component_logger
from tm.core import config, cycles, editor, standard_time
from tm.core.measurement import VALUE_ADDED
from tm.core.stopwatch import StopwatchAccumulator
from tm.core.store import SegmentStore, frontier
from tm.core.validation import validate

log = get_component_logger("session")


class TimelineSession:

    def __init__(self, clock, store=None, settings=None, on_active_changed=None):
        self.clock = clock
        self.settings = settings if settings is not None else config.build_default_settings()
        self.store = store if store is not None else SegmentStore(history_limit=self.settings["history_limit"])
        self.stopwatches = StopwatchAccumulator(clock)
        self.marks = editor.MarkSession(min_duration=self.settings["mark_end_min_duration"])
        self.allowances = config.allowances_from_settings(self.settings)
        self.auto_append_enabled = bool(self.settings["auto_append"])
        self.on_active_changed = on_active_changed

        self.current_cycle = 1
        self.selected_id = None
        self.active_id = None
        self.last_report = None
        self._counter = 1
        self._drag = None

        clock.subscribe(self._on_time_update)

    def close(self):
        self.clock.unsubscribe(self._on_time_update)

    #region === Clock ===

    def _on_time_update(self, t):
        active = self.store.active_at(t)
        active_id = active.id if active is not None else None
        if active_id != self.active_id:
            self.active_id = active_id
            if self.on_active_changed is not None:
                self.on_active_changed(active)

    @property
    def active_segment(self):
        return self.store.get(self.active_id) if self.active_id is not None else None

    def _media_duration(self):
        return self.clock.duration()

    #endregion === Clock ===

    #region === Creating segments ===

    def _commit_new(self, segments, measurement, reason):
        existing = self.store.get_all()
        self.last_report = validate(
            measurement, existing,
            short=self.settings["short_duration_warning"], long=self.settings["long_duration_warning"])
        self.store.replace_all(segments, reason=reason)
        self._on_time_update(self.clock.current_time())
        return measurement

    def click_timeline(self, px, width, on_segment=None, cutting=False):
        """Pointer click on the track. Cuts, auto-appends or seeks; returns the new segment if one was made."""
        duration = self._media_duration()
        if duration <= 0:
            return None
        if cutting and on_segment is not None:
            self.cut(on_segment)
            return None
        if on_segment is None and self.auto_append_enabled:
            click_time = editor.pixel_to_time(px, width, duration)
            segments, measurement = editor.auto_append(
                self.store.get_all(), click_time, duration,
                min_duration=self.settings["auto_append_min_duration"], cycle=self.current_cycle)
            return self._commit_new(segments, measurement, "auto_append")
        self.clock.seek(editor.pixel_to_time(px, width, duration))
        return None

    def quick_add(self):
        """Append a segment from the frontier to the playhead, named "Element N"."""
        duration = self._media_duration() or float("inf")
        segments, measurement = editor.quick_add(
            self.store.get_all(), self.clock.current_time(), duration, self._counter, cycle=self.current_cycle,
            min_duration=self.settings["auto_append_min_duration"])
        self._counter += 1
        return self._commit_new(segments, measurement, "quick_add")

    def mark_start(self, at=None):
        """Start a two-step segment. Without ``at`` the start fills the gap after the latest segment."""
        return self.marks.mark_start(frontier(self.store.get_all()) if at is None else at)

    def mark_end(self, name="", category=VALUE_ADDED, therblig=""):
        name = name.strip() or f"Element {self._counter}"
        segments, measurement = self.marks.mark_end(
            self.store.get_all(), self.clock.current_time(), self._media_duration() or None,
            element_name=name, category=category, therblig=therblig, rating=0, cycle=self.current_cycle)
        self._counter += 1
        return self._commit_new(segments, measurement, "mark")

    def cancel_mark(self):
        self.marks.cancel()

    #endregion === Creating segments ===

    #region === Editing ===

    def select(self, segment_id):
        self.selected_id = segment_id

    def cut(self, segment_id, cut_time=None):
        cut_time = self.clock.current_time() if cut_time is None else cut_time
        result = self.store.replace_all(editor.split_segment(self.store.get_all(), segment_id, cut_time), reason="split")
        self.stopwatches.discard(segment_id)
        if self.selected_id == segment_id:
            self.selected_id = None
        self._on_time_update(self.clock.current_time())
        return result

    def delete(self, segment_id):
        result = self.store.remove(segment_id)
        self.stopwatches.discard(segment_id)
        if self.selected_id == segment_id:
            self.selected_id = None
        self._on_time_update(self.clock.current_time())
        return result

    def edit(self, segment_id, **fields):
        """Apply an edit-dialog submission; returns advisory warnings. Rejections raise and change nothing."""
        duration = self._media_duration()
        segments, warnings = editor.apply_edit(
            self.store.get_all(), segment_id, media_duration=duration if duration > 0 else None,
            tolerance=self.settings["breakdown_tolerance"],
            under_tolerance=self.settings["under_allocation_tolerance"], **fields)
        self.store.replace_all(segments, reason="edit")
        return warnings

    def move_up(self, segment_id):
        return self.store.replace_all(editor.move_up(self.store.get_all(), segment_id), reason="reorder")

    def move_down(self, segment_id):
        return self.store.replace_all(editor.move_down(self.store.get_all(), segment_id), reason="reorder")

    def begin_drag(self, segment_id, mode, pointer_x, track_width):
        """Start a drag gesture. Ignored until the media duration is known."""
        segment = self.store.get(segment_id)
        if segment is None:
            raise NoActiveSegment(f"No measurement with id '{segment_id}' to drag.")
        if self._media_duration() <= 0:
            log.debug(f"Ignored drag on id={segment_id}: media duration not known yet")
            return False
        self._drag = editor.DragController(track_width, self._media_duration(), self.settings["min_drag_duration"])
        self._drag.start(segment, mode, pointer_x)
        return True

    def drag_to(self, pointer_x):
        """Live preview for the current pointer position. The store is not touched."""
        if self._drag is None:
            return self.store.get_all()
        self._drag.move(pointer_x)
        return self._drag.preview(self.store.get_all())

    def end_drag(self, pointer_x=None):
        if self._drag is None:
            return self.store.get_all()
        drag, self._drag = self._drag, None
        result = self.store.replace_all(drag.finish(self.store.get_all(), pointer_x), reason="drag")
        self._on_time_update(self.clock.current_time())
        return result

    def cancel_drag(self):
        if self._drag is not None:
            self._drag.cancel()
        self._drag = None

    def undo(self):
        return self.store.undo()

    def redo(self):
        return self.store.redo()

    #endregion === Editing ===

    #region === Stopwatches ===

    # Explicit id wins; otherwise the same active-then-selected rule as the quick-categorize key.
    def _stopwatch_target(self, segment_id=None):
        if segment_id is not None:
            if self.store.get(segment_id) is None:
                raise NoActiveSegment(f"No measurement with id '{segment_id}' for the stopwatch.")
            return segment_id
        return self.stopwatches.target(self.store.get_all(), self.selected_id)

    def toggle_stopwatch(self, category):
        """Quick-categorize key: start or stop ``category`` on the active (else selected) segment."""
        segments, segment_id, running = self.stopwatches.toggle(self.store.get_all(), category, self.selected_id)
        if not running:
            self.store.replace_all(segments, reason=f"stopwatch:{category}")
        return running

    def start_stopwatch(self, category, segment_id=None):
        return self.stopwatches.start(self._stopwatch_target(segment_id), category)

    def stop_stopwatch(self, category, segment_id=None):
        segment_id = self._stopwatch_target(segment_id)
        return self.store.replace_all(
            self.stopwatches.stop(self.store.get_all(), segment_id, category), reason=f"stopwatch:{category}")

    #endregion === Stopwatches ===

    #region === Cycles and analytics ===

    def next_cycle(self):
        self.current_cycle += 1
        log.info(f"Advanced to cycle {self.current_cycle}")
        return self.current_cycle

    def set_cycle(self, cycle):
        if int(cycle) < 1:
            raise InvalidInterval("Cycle numbers start at 1.")
        self.current_cycle = int(cycle)

    def set_allowances(self, allowances):
        self.allowances = allowances
        config.set_allowances(self.settings, allowances)

    def standard_times(self):
        return standard_time.standard_times(self.store.get_all(), self.allowances)

    def total_standard_time(self):
        return standard_time.total_standard_time(self.store.get_all(), self.allowances)

    def cycle_stats(self):
        return cycles.cycle_stats(self.store.get_all())

    def cycle_summary(self, cycle=None):
        return cycles.cycle_summary(self.store.get_all(), self.current_cycle if cycle is None else cycle)

    #endregion === Cycles and analytics ===
