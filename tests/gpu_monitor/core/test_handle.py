"""Unit tests for gpu_monitor.core.handle module."""

import threading
import unittest
from unittest.mock import MagicMock

from gpu_monitor.core.errors import InvalidDeviceIndex, ProviderUnavailable
from gpu_monitor.core.handle import MonitorHandle
from tests.fakes import FakeDevice, FakeProvider, names


class TestMonitorHandleUnavailable(unittest.TestCase):
    """A failed initialization is permanent."""

    def setUp(self):
        self.factory = MagicMock(side_effect=ProviderUnavailable("Failed to initialize NVML: driver not loaded"))
        self.handle = MonitorHandle(provider_factory=self.factory, resolve_name=names())

    def test_reports_unavailable(self):
        self.assertFalse(self.handle.is_available())
        self.assertIn("driver not loaded", self.handle.init_error)

    def test_queries_raise_without_retrying(self):
        for query in (self.handle.device_count, self.handle.snapshots, lambda: self.handle.device_snapshot(0)):
            with self.assertRaises(ProviderUnavailable) as ctx:
                query()
            self.assertIn("GPU monitor not initialized", str(ctx.exception))
        self.factory.assert_called_once()


class TestMonitorHandleQueries(unittest.TestCase):
    """Test queries through an initialized handle."""

    def setUp(self):
        self.provider = FakeProvider([FakeDevice(name="A"), FakeDevice(name="B")])
        self.handle = MonitorHandle(provider_factory=lambda: self.provider, resolve_name=names())

    def test_queries(self):
        self.assertTrue(self.handle.is_available())
        self.assertEqual(self.handle.device_count(), 2)
        self.assertEqual([s.device.name for s in self.handle.snapshots()], ["A", "B"])
        self.assertEqual(self.handle.device_snapshot(1).device.name, "B")

    def test_invalid_index(self):
        with self.assertRaises(InvalidDeviceIndex):
            self.handle.device_snapshot(2)

    def test_close_shuts_provider_down(self):
        self.handle.close()
        self.assertEqual(self.provider.shutdown_calls, 1)
        self.assertFalse(self.handle.is_available())
        with self.assertRaises(ProviderUnavailable):
            self.handle.device_count()

    def test_queries_are_serialized(self):
        """No two threads are ever inside the provider at once."""
        active = []
        overlaps = []
        original = self.provider.device_count

        def tracked_count():
            active.append(1)
            if len(active) > 1:
                overlaps.append(len(active))
            try:
                return original()
            finally:
                active.pop()

        self.provider.device_count = tracked_count
        threads = [threading.Thread(target=self.handle.snapshots) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(overlaps, [])
        self.assertEqual(self.provider.count_calls, 8)


if __name__ == "__main__":
    unittest.main()
