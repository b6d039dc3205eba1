"""Unit tests for gpu_monitor.data.snapshot module."""

import unittest

from gpu_monitor.core.errors import InvalidDeviceIndex, NoDevicesFound, ProviderUnavailable
from gpu_monitor.data.snapshot import build_device_snapshot, build_snapshots, lookup_device_snapshot
from gpu_monitor.models import DeviceMetrics, MemoryInfo, ProcessType, RawProcess
from tests.fakes import FakeDevice, FakeProvider, names


class TestBuildDeviceSnapshot(unittest.TestCase):
    """Test single-device snapshot assembly."""

    def test_full_snapshot(self):
        provider = FakeProvider([
            FakeDevice(
                metrics=DeviceMetrics(gpu_utilization=42, temperature=61),
                compute=[RawProcess(100, 10)],
                graphics=[RawProcess(100, 20), RawProcess(200, 5)],
            )
        ])
        snapshot = build_device_snapshot(provider, 0, names({100: "train.py"}))

        self.assertEqual(snapshot.device.index, 0)
        self.assertEqual(snapshot.metrics.gpu_utilization, 42)
        self.assertEqual([p.pid for p in snapshot.processes], [100, 200])
        self.assertEqual(snapshot.processes[0].process_type, ProcessType.MIXED)
        self.assertEqual(snapshot.processes[0].name, "train.py")
        self.assertIsInstance(snapshot.processes, tuple)

    def test_memory_failure_degrades_to_zero(self):
        provider = FakeProvider([FakeDevice(memory=None)])
        snapshot = build_device_snapshot(provider, 0, names())
        self.assertEqual(snapshot.memory, MemoryInfo(0, 0, 0))
        self.assertEqual(snapshot.memory.usage_percent(), 0.0)

    def test_process_failure_degrades_to_empty(self):
        provider = FakeProvider([FakeDevice(compute=[RawProcess(1, 1)], processes_fail=True)])
        snapshot = build_device_snapshot(provider, 0, names())
        self.assertEqual(snapshot.processes, ())


class TestBuildSnapshots(unittest.TestCase):
    """Test enumeration of every device."""

    def test_one_snapshot_per_device_in_order(self):
        provider = FakeProvider([FakeDevice(name="A"), FakeDevice(name="B")])
        snapshots = build_snapshots(provider, names())
        self.assertEqual([(s.index, s.device.name) for s in snapshots], [(0, "A"), (1, "B")])

    def test_no_devices(self):
        with self.assertRaises(NoDevicesFound) as ctx:
            build_snapshots(FakeProvider([]), names())
        self.assertEqual(str(ctx.exception), "No NVIDIA GPU devices found")

    def test_enumeration_failure_propagates(self):
        provider = FakeProvider()
        provider.enumeration_error = "driver went away"
        with self.assertRaises(ProviderUnavailable):
            build_snapshots(provider, names())


class TestLookupDeviceSnapshot(unittest.TestCase):
    """Test direct device lookup."""

    def setUp(self):
        self.provider = FakeProvider([FakeDevice(), FakeDevice()])

    def test_valid_index(self):
        self.assertEqual(lookup_device_snapshot(self.provider, 1, names()).index, 1)

    def test_out_of_range(self):
        for index in (2, 5, -1):
            with self.subTest(index=index):
                with self.assertRaises(InvalidDeviceIndex) as ctx:
                    lookup_device_snapshot(self.provider, index, names())
                self.assertEqual(ctx.exception.index, index)


if __name__ == "__main__":
    unittest.main()
