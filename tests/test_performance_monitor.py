import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_scoring.services.performance_monitor import PerformanceMonitor, percentile


class PerformanceMonitorTests(unittest.TestCase):
    def test_percentiles_use_nearest_rank(self):
        values = list(range(1, 101))
        self.assertEqual(percentile(values, 50), 50)
        self.assertEqual(percentile(values, 95), 95)
        self.assertEqual(percentile(values, 99), 99)
        self.assertEqual(percentile([7], 95), 7)
        self.assertEqual(percentile([], 50), 0)

    def test_stats_summarize_recorded_durations(self):
        monitor = PerformanceMonitor()
        for duration in reversed(range(1, 101)):
            monitor.record("score_resume", duration)
        monitor.record("rescore", 5000)

        stats = monitor.stats("score_resume")
        self.assertEqual(
            stats.as_dict(),
            {"count": 100, "min": 1, "max": 100, "avg": 51, "p50": 50, "p95": 95, "p99": 99},
        )
        self.assertEqual(monitor.stats().count, 101)
        self.assertIsNone(monitor.stats("unknown"))

    def test_history_is_bounded(self):
        monitor = PerformanceMonitor(max_measurements=5)
        for duration in range(1, 9):
            monitor.record("score_resume", duration)
        stats = monitor.stats()
        self.assertEqual(stats.count, 5)
        self.assertEqual((stats.min, stats.max), (4, 8))
        self.assertEqual([item.duration_ms for item in monitor.recent(2)], [7, 8])

    def test_target_check(self):
        monitor = PerformanceMonitor(target_ms=2000)
        self.assertFalse(monitor.meets_target())
        for _ in range(19):
            monitor.record("score_resume", 300)
        self.assertTrue(monitor.meets_target())
        with self.assertLogs("ats_scoring.services.performance_monitor", level="WARNING") as logs:
            monitor.record("score_resume", 2500)
            monitor.record("score_resume", 2600)
        self.assertIn("ats_slow_operation operation=score_resume duration_ms=2500", logs.output[0])
        self.assertFalse(monitor.meets_target("score_resume"))

    def test_track_records_success_and_failure(self):
        monitor = PerformanceMonitor()
        with monitor.track("score_resume", {"source": "api"}):
            pass
        with self.assertRaises(ValueError):
            with monitor.track("score_resume"):
                raise ValueError("bad input")

        first, second = monitor.recent()
        self.assertTrue(first.success)
        self.assertEqual(first.metadata, {"source": "api"})
        self.assertFalse(second.success)
        self.assertEqual(second.metadata, {"error": "bad input"})

    def test_clear_and_invalid_limits(self):
        monitor = PerformanceMonitor()
        monitor.record("score_resume", 10)
        monitor.clear()
        self.assertEqual(monitor.recent(), [])
        with self.assertRaises(ValueError):
            PerformanceMonitor(max_measurements=0)
        with self.assertRaises(ValueError):
            PerformanceMonitor(target_ms=0)


if __name__ == "__main__":
    unittest.main()
