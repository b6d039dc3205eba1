"""Unit tests for gpu_monitor.core.history module."""

import unittest

from gpu_monitor.core.history import HistoryTracker
from gpu_monitor.models import DeviceMetrics, DeviceSnapshot, DeviceStaticInfo, MemoryInfo


def snapshot(index, utilization=0, used=0, total=100):
    return DeviceSnapshot(
        device=DeviceStaticInfo(index=index, name="GPU", uuid="", pci_bus_id="", driver_version=""),
        metrics=DeviceMetrics(gpu_utilization=utilization),
        memory=MemoryInfo(total=total, used=used, free=total - used),
    )


class TestHistoryTracker(unittest.TestCase):
    """Test rolling per-device series."""

    def test_first_update(self):
        tracker = HistoryTracker()
        tracker.update([snapshot(0, utilization=42, used=25)])
        self.assertEqual(tracker.utilization(0), [42])
        self.assertEqual(tracker.memory(0), [25])
        self.assertEqual(len(tracker), 1)

    def test_depth_cap_evicts_oldest(self):
        tracker = HistoryTracker(depth=60)
        for value in range(61):
            tracker.update([snapshot(0, utilization=value)])
        series = tracker.utilization(0)
        self.assertEqual(len(series), 60)
        self.assertEqual(series[0], 1)
        self.assertEqual(series[-1], 60)

    def test_memory_percent_is_truncated(self):
        tracker = HistoryTracker()
        tracker.update([snapshot(0, used=2, total=3)])
        self.assertEqual(tracker.memory(0), [66])

    def test_zero_total_memory_records_zero(self):
        tracker = HistoryTracker()
        tracker.update([snapshot(0, used=0, total=0)])
        self.assertEqual(tracker.memory(0), [0])

    def test_grows_but_never_shrinks(self):
        tracker = HistoryTracker()
        tracker.update([snapshot(0, 10)])
        tracker.update([snapshot(0, 20), snapshot(1, 30)])
        tracker.update([snapshot(0, 40)])
        self.assertEqual(len(tracker), 2)
        self.assertEqual(tracker.utilization(0), [10, 20, 40])
        self.assertEqual(tracker.utilization(1), [30])

    def test_out_of_range_position(self):
        self.assertEqual(HistoryTracker().utilization(3), [])
        self.assertEqual(HistoryTracker().memory(3), [])

    def test_series_snapshots_are_copies(self):
        tracker = HistoryTracker()
        tracker.update([snapshot(0, 5)])
        series = tracker.utilization_series
        tracker.update([snapshot(0, 6)])
        self.assertEqual(series, ((5,),))
        self.assertEqual(tracker.memory_series, ((0, 0),))

    def test_invalid_depth(self):
        with self.assertRaises(ValueError):
            HistoryTracker(depth=0)


if __name__ == "__main__":
    unittest.main()
