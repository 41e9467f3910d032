"""Tests for the measurement entity, the segment store and its undo history.

Covers: tm.core.measurement, tm.core.store, tm.core.history
"""

import unittest


def _m(start, end, **fields):
    from tm.core.measurement import Measurement
    return Measurement(start_time=start, end_time=end, **fields)


# ──────────────────────────────────────────────────────────────────────────
# measurement.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestMeasurement(unittest.TestCase):

    def test_duration_is_derived(self):
        """duration always equals end - start, including after an evolve."""
        m = _m(1.0, 4.0)
        self.assertEqual(m.duration, 3.0)
        self.assertEqual(m.evolve(end_time=6.0).duration, 5.0)

    def test_is_immutable(self):
        """Assigning to a field raises instead of mutating."""
        from dataclasses import FrozenInstanceError
        m = _m(0.0, 1.0)
        with self.assertRaises(FrozenInstanceError):
            m.start_time = 0.5

    def test_defaults(self):
        """A bare measurement gets a fresh id and the documented defaults."""
        from tm.core.measurement import NON_VALUE_ADDED
        a, b = _m(0.0, 1.0), _m(0.0, 1.0)
        self.assertNotEqual(a.id, b.id)
        self.assertEqual(a.element_name, "New Element")
        self.assertEqual(a.category, NON_VALUE_ADDED)
        self.assertEqual(a.rating, 100)
        self.assertEqual(a.cycle, 1)
        self.assertEqual(a.breakdown_total, 0.0)

    def test_contains_is_closed_interval(self):
        """Both endpoints count as inside."""
        m = _m(2.0, 5.0)
        self.assertTrue(m.contains(2.0))
        self.assertTrue(m.contains(5.0))
        self.assertFalse(m.contains(5.01))

    def test_to_dict_uses_host_keys(self):
        """to_dict emits camelCase keys and includes the derived duration."""
        data = _m(1.0, 3.5, element_name="Reach", manual_time=1.0).to_dict()
        self.assertEqual(data["elementName"], "Reach")
        self.assertEqual(data["startTime"], 1.0)
        self.assertEqual(data["manualTime"], 1.0)
        self.assertEqual(data["duration"], 2.5)

    def test_from_dict_accepts_host_dict(self):
        """Host dicts load with blanks treated as zero and duration ignored."""
        from tm.core.measurement import Measurement
        m = Measurement.from_dict({
            "id": "abc", "elementName": "Grasp", "startTime": "1.5", "endTime": 3,
            "manualTime": "", "walkTime": "0,5", "duration": 99, "cycle": None,
        })
        self.assertEqual(m.id, "abc")
        self.assertEqual(m.start_time, 1.5)
        self.assertEqual(m.manual_time, 0.0)
        self.assertEqual(m.walk_time, 0.5)
        self.assertEqual(m.duration, 1.5)
        self.assertEqual(m.cycle, 1)

    def test_from_dict_rating_and_cycle_text(self):
        """Numeric text parses; an unreadable rating is rejected and an unreadable cycle becomes 1."""
        from tm.common.errors import TimelineError
        from tm.core.measurement import Measurement
        m = Measurement.from_dict({"startTime": 0, "endTime": 1, "rating": "95", "cycle": "2"})
        self.assertEqual((m.rating, m.cycle), (95, 2))
        m = Measurement.from_dict({"startTime": 0, "endTime": 1, "cycle": "x"})
        self.assertEqual(m.cycle, 1)
        with self.assertRaises(TimelineError) as ctx:
            Measurement.from_dict({"startTime": 0, "endTime": 1, "rating": "abc"})
        self.assertIn("rating", str(ctx.exception))

    def test_from_dict_rejects_missing_times(self):
        """A dict without a numeric start or end is rejected."""
        from tm.common.errors import InvalidInterval
        from tm.core.measurement import Measurement
        with self.assertRaises(InvalidInterval):
            Measurement.from_dict({"startTime": "abc", "endTime": 2})
        with self.assertRaises(InvalidInterval):
            Measurement.from_dict({"startTime": 0})


# ──────────────────────────────────────────────────────────────────────────
# store.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestSnapshotHelpers(unittest.TestCase):

    def test_frontier(self):
        """Frontier is the max end time, 0 when empty, independent of order."""
        from tm.core.store import frontier
        self.assertEqual(frontier(()), 0.0)
        self.assertEqual(frontier((_m(5.0, 6.0), _m(0.0, 8.0), _m(1.0, 2.0))), 8.0)

    def test_active_at_returns_first_in_store_order(self):
        """With overlapping segments the earlier one in the collection wins."""
        from tm.core.store import active_at
        a = _m(0.0, 5.0, element_name="A")
        b = _m(3.0, 8.0, element_name="B")
        self.assertIs(active_at((b, a), 4.0), b)
        self.assertIs(active_at((a, b), 4.0), a)
        self.assertIsNone(active_at((a, b), 9.0))

    def test_require_unknown_id(self):
        """Unknown ids raise UnknownSegment, which is also a KeyError."""
        from tm.common.errors import UnknownSegment
        from tm.core.store import require
        with self.assertRaises(UnknownSegment):
            require((_m(0, 1),), "nope")
        with self.assertRaises(KeyError):
            require((), "nope")

    def test_check_invariants(self):
        """Inverted, zero-length, negative and duplicate-id collections are rejected."""
        from tm.common.errors import InvalidInterval
        from tm.core.store import check_invariants
        check_invariants((_m(0.0, 1.0), _m(0.5, 2.0)))
        for bad in ((_m(2.0, 1.0),), (_m(1.0, 1.0),), (_m(-1.0, 1.0),), (_m(0, 1, id="x"), _m(1, 2, id="x"))):
            with self.assertRaises(InvalidInterval):
                check_invariants(bad)


class TestSegmentStore(unittest.TestCase):

    def test_add_from_partial_applies_defaults(self):
        """add() fills category, rating and cycle defaults for a partial dict."""
        from tm.core.measurement import NON_VALUE_ADDED
        from tm.core.store import SegmentStore
        store = SegmentStore()
        m = store.add({"startTime": 1.0, "endTime": 2.0, "elementName": "Reach"})
        self.assertEqual(len(store), 1)
        self.assertEqual(m.category, NON_VALUE_ADDED)
        self.assertEqual(m.rating, 0)
        self.assertEqual(m.cycle, 1)
        self.assertIs(store.get(m.id), m)

    def test_add_measurement_instance(self):
        """A ready-made Measurement is stored as is."""
        from tm.core.store import SegmentStore
        store = SegmentStore()
        m = _m(0.0, 1.0)
        self.assertIs(store.add(m), m)
        self.assertEqual(store.get_all(), (m,))

    def test_add_invalid_leaves_store_unchanged(self):
        """A rejected add raises and keeps the previous collection."""
        from tm.common.errors import InvalidInterval
        from tm.core.store import SegmentStore
        store = SegmentStore([_m(0.0, 1.0)])
        before = store.get_all()
        with self.assertRaises(InvalidInterval):
            store.add(start_time=3.0, end_time=2.0)
        self.assertIs(store.get_all(), before)

    def test_replace_all_with_current_is_noop(self):
        """Replacing with the current snapshot changes nothing and records no history."""
        from tm.core.store import SegmentStore
        store = SegmentStore([_m(0.0, 1.0), _m(1.0, 2.0)])
        before = store.get_all()
        depth = len(store.history)
        self.assertIs(store.replace_all(store.get_all()), before)
        self.assertEqual(len(store.history), depth)

    def test_replace_all_swaps_whole_collection(self):
        """replace_all installs a new tuple; the old snapshot is untouched."""
        from tm.core.store import SegmentStore
        a = _m(0.0, 1.0)
        store = SegmentStore([a])
        old = store.get_all()
        new = store.replace_all([a, _m(1.0, 2.0)])
        self.assertIsInstance(new, tuple)
        self.assertEqual(len(new), 2)
        self.assertEqual(len(old), 1)

    def test_remove(self):
        """remove() drops the segment and rejects unknown ids."""
        from tm.common.errors import UnknownSegment
        from tm.core.store import SegmentStore
        a, b = _m(0.0, 1.0), _m(1.0, 2.0)
        store = SegmentStore([a, b])
        store.remove(a.id)
        self.assertEqual(store.get_all(), (b,))
        with self.assertRaises(UnknownSegment):
            store.remove(a.id)

    def test_undo_redo(self):
        """Undo steps back through replaced snapshots and redo replays them."""
        from tm.core.store import SegmentStore
        store = SegmentStore()
        a = store.add(start_time=0.0, end_time=1.0)
        store.add(start_time=1.0, end_time=2.0)
        self.assertEqual(len(store.undo()), 1)
        self.assertEqual(store.get_all(), (a,))
        self.assertEqual(len(store.undo()), 0)
        self.assertEqual(len(store.undo()), 0)
        self.assertEqual(len(store.redo()), 1)

    def test_load_resets_history(self):
        """Loading a project is not undoable."""
        from tm.core.store import SegmentStore
        store = SegmentStore()
        store.add(start_time=0.0, end_time=1.0)
        store.load([_m(2.0, 3.0)])
        self.assertFalse(store.history.can_undo)
        self.assertEqual(len(store.undo()), 1)


# ──────────────────────────────────────────────────────────────────────────
# history.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestSnapshotHistory(unittest.TestCase):

    def test_limit_drops_oldest(self):
        """Only the newest `limit` snapshots are kept."""
        from tm.core.history import SnapshotHistory
        history = SnapshotHistory(limit=3)
        for i in range(5):
            history.record((i,), reason=f"step {i}")
        self.assertEqual(len(history), 3)
        self.assertEqual(history.undo(), (3,))
        self.assertEqual(history.undo(), (2,))
        self.assertIsNone(history.undo())

    def test_record_truncates_redo(self):
        """Recording after an undo discards the redo branch."""
        from tm.core.history import SnapshotHistory
        history = SnapshotHistory()
        history.record(("a",))
        history.record(("b",))
        history.undo()
        history.record(("c",))
        self.assertFalse(history.can_redo)
        self.assertEqual(history.undo(), ("a",))

    def test_invalid_limit(self):
        from tm.core.history import SnapshotHistory
        with self.assertRaises(ValueError):
            SnapshotHistory(limit=0)


if __name__ == "__main__":
    unittest.main()
