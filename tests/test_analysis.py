"""Tests for standard time, cycle statistics and advisory validation.

Covers: tm.core.standard_time, tm.core.cycles, tm.core.validation
"""

import unittest


def _m(start, end, **fields):
    from tm.core.measurement import Measurement
    return Measurement(start_time=start, end_time=end, **fields)


# ──────────────────────────────────────────────────────────────────────────
# standard_time.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestStandardTime(unittest.TestCase):

    def test_rated_segment_with_default_allowances(self):
        """10s at rating 120 with 5/4/2 allowances -> normal 12.0, standard 13.32."""
        from tm.core.standard_time import Allowances, standard_time
        result = standard_time(10.0, 120, Allowances(5, 4, 2))
        self.assertAlmostEqual(result.normal_time, 12.0)
        self.assertAlmostEqual(result.standard_time, 13.32)

    def test_zero_rating(self):
        from tm.core.standard_time import standard_time
        result = standard_time(10.0, 0)
        self.assertEqual(result.normal_time, 0.0)
        self.assertEqual(result.standard_time, 0.0)

    def test_totals_follow_current_allowances(self):
        """Totals are recomputed from whatever allowances are passed in."""
        from tm.core.standard_time import Allowances, standard_times, total_standard_time
        segments = (_m(0.0, 10.0, rating=100), _m(10.0, 15.0, rating=100))
        self.assertAlmostEqual(total_standard_time(segments, Allowances(0, 0, 0)), 15.0)
        self.assertAlmostEqual(total_standard_time(segments, Allowances(10, 0, 0)), 16.5)
        rows = standard_times(segments)
        self.assertIs(rows[0][0], segments[0])
        self.assertAlmostEqual(rows[0][1].standard_time, 11.1)

    def test_allowances_dict(self):
        from tm.core.standard_time import Allowances
        allowances = Allowances.from_dict({"personal": "7"})
        self.assertEqual(allowances.personal, 7.0)
        self.assertEqual(allowances.fatigue, 4.0)
        self.assertEqual(allowances.total, 13.0)
        self.assertEqual(Allowances.from_dict(allowances.to_dict()), allowances)


# ──────────────────────────────────────────────────────────────────────────
# cycles.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestCycles(unittest.TestCase):

    def test_cycle_stats(self):
        """Cycle 1 totals 5s and cycle 2 totals 10s -> avg 7.5, min 5, max 10."""
        from tm.core.cycles import aggregate_by_cycle, cycle_stats
        segments = (
            _m(0.0, 2.0, cycle=1), _m(2.0, 5.0, cycle=1),
            _m(5.0, 9.0, cycle=2), _m(9.0, 15.0, cycle=2),
        )
        self.assertEqual(aggregate_by_cycle(segments), {1: 5.0, 2: 10.0})
        stats = cycle_stats(segments)
        self.assertEqual(stats.count, 2)
        self.assertEqual(stats.average, 7.5)
        self.assertEqual(stats.minimum, 5.0)
        self.assertEqual(stats.maximum, 10.0)

    def test_empty_timeline_has_no_stats(self):
        from tm.core.cycles import cycle_stats, next_cycle
        self.assertIsNone(cycle_stats(()))
        self.assertEqual(next_cycle(()), 1)

    def test_aggregate_sorted_by_cycle(self):
        from tm.core.cycles import aggregate_by_cycle, next_cycle
        segments = (_m(0.0, 1.0, cycle=3), _m(1.0, 2.0, cycle=1))
        self.assertEqual(list(aggregate_by_cycle(segments)), [1, 3])
        self.assertEqual(next_cycle(segments), 4)

    def test_element_stats(self):
        """Per-element spread uses the population standard deviation."""
        from tm.core.cycles import element_stats
        segments = (
            _m(0.0, 2.0, element_name="Reach", cycle=1),
            _m(2.0, 3.0, element_name="Grasp", cycle=1),
            _m(3.0, 7.0, element_name="Reach", cycle=2),
        )
        stats = {s.name: s for s in element_stats(segments)}
        reach = stats["Reach"]
        self.assertEqual(reach.count, 2)
        self.assertEqual((reach.minimum, reach.maximum), (2.0, 4.0))
        self.assertEqual(reach.average, 3.0)
        self.assertEqual(reach.std_dev, 1.0)
        self.assertEqual(reach.total, 6.0)
        self.assertEqual(stats["Grasp"].std_dev, 0.0)

    def test_cycle_summary(self):
        """Category totals, ratios and the longest element for one cycle."""
        from tm.core.cycles import cycle_summary
        from tm.core.measurement import NON_VALUE_ADDED, VALUE_ADDED, WASTE
        segments = (
            _m(0.0, 6.0, category=VALUE_ADDED, cycle=1),
            _m(6.0, 9.0, category=NON_VALUE_ADDED, cycle=1),
            _m(9.0, 10.0, category=WASTE, cycle=1),
            _m(10.0, 30.0, category=WASTE, cycle=2),
        )
        summary = cycle_summary(segments, cycle=1)
        self.assertEqual(summary.total, 10.0)
        self.assertEqual(summary.element_count, 3)
        self.assertAlmostEqual(summary.value_added_ratio, 60.0)
        self.assertAlmostEqual(summary.non_value_added_ratio, 30.0)
        self.assertAlmostEqual(summary.waste_ratio, 10.0)
        self.assertIs(summary.bottleneck, segments[0])
        self.assertIs(cycle_summary(segments).bottleneck, segments[3])
        self.assertEqual(cycle_summary((), 1).value_added_ratio, 0.0)


# ──────────────────────────────────────────────────────────────────────────
# validation.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestValidation(unittest.TestCase):

    def test_parse_interval(self):
        from tm.common.errors import InvalidInterval
        from tm.core.validation import parse_interval
        self.assertEqual(parse_interval("1.5", " 3 "), (1.5, 3.0))
        for start, end in ((None, 1), ("", 1), (2, 1), (1, 1), (-0.5, 1)):
            with self.assertRaises(InvalidInterval):
                parse_interval(start, end)

    def test_check_breakdown(self):
        """Over tolerance raises; zero total never warns; a real shortfall warns."""
        from tm.common.errors import OverAllocatedBreakdown
        from tm.core.validation import check_breakdown
        with self.assertRaises(OverAllocatedBreakdown):
            check_breakdown(5.0, manual=3.0, auto=3.0)
        self.assertEqual(check_breakdown(5.0, manual=5.005), [])
        self.assertEqual(check_breakdown(5.0), [])
        self.assertEqual(check_breakdown(5.0, manual=4.96), [])
        self.assertEqual(len(check_breakdown(5.0, manual=4.0)), 1)

    def test_duration_warnings(self):
        from tm.core.validation import duration_warnings
        self.assertEqual([w.severity for w in duration_warnings(0.05)], ["info"])
        self.assertEqual([w.severity for w in duration_warnings(61.0)], ["warning"])
        self.assertEqual(duration_warnings(5.0), [])

    def test_similarity(self):
        from tm.core.validation import similarity
        self.assertEqual(similarity("Reach", "reach"), 1.0)
        self.assertEqual(similarity("", ""), 1.0)
        self.assertLess(similarity("Reach", "Weld"), 0.5)

    def test_detect_duplicates(self):
        """Same name, close duration and same category -> duplicate."""
        from tm.core.measurement import WASTE
        from tm.core.validation import detect_duplicates
        existing = (_m(0.0, 2.0, element_name="Reach part"),
                    _m(2.0, 4.3, element_name="Reach part", category=WASTE),
                    _m(5.0, 9.0, element_name="Reach part"))
        candidate = _m(10.0, 12.2, element_name="reach part")
        self.assertEqual(detect_duplicates(candidate, existing), [existing[0]])
        self.assertEqual(detect_duplicates(existing[0], existing), [])

    def test_suggestions(self):
        from tm.core.measurement import NON_VALUE_ADDED, VALUE_ADDED, WASTE
        from tm.core.validation import suggest_category, suggest_therblig
        self.assertEqual(suggest_category("Wait for crane"), WASTE)
        self.assertEqual(suggest_category("Weld seam"), VALUE_ADDED)
        self.assertEqual(suggest_category("Zzz"), NON_VALUE_ADDED)
        self.assertEqual(suggest_category("Zzq", (_m(0, 1, element_name="Zzq", category=WASTE),)), WASTE)
        self.assertEqual(suggest_therblig("Grasp bolt"), "TL")
        self.assertEqual(suggest_therblig("Disassemble cover"), "DA")
        self.assertEqual(suggest_therblig("Inspect weld"), "I")
        self.assertEqual(suggest_therblig("Zzz"), "")

    def test_element_name_suggestions(self):
        from tm.core.validation import element_name_suggestions
        existing = (_m(0, 1, element_name="Reach bin"), _m(1, 2, element_name="Reach bin"),
                    _m(2, 3, element_name="Reach tray"), _m(3, 4, element_name="Weld"))
        names = element_name_suggestions("Reach", existing)
        self.assertEqual(set(names), {"Reach bin", "Reach tray"})
        self.assertEqual(element_name_suggestions("R", existing), [])

    def test_validate_report(self):
        """validate() never raises and bundles warnings with suggestions."""
        from tm.core.validation import validate
        report = validate(_m(0.0, 0.05, element_name="Inspect part", therblig=""), ())
        self.assertFalse(report.clean)
        self.assertEqual([w.type for w in report.warnings], ["duration"])
        self.assertEqual([s.value for s in report.suggestions], ["I"])
        self.assertTrue(validate(_m(0.0, 5.0, therblig="I"), ()).clean)


if __name__ == "__main__":
    unittest.main()
