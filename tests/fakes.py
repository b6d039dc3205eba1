"""In-memory telemetry provider used across the test suite."""

from __future__ import annotations

from dataclasses import dataclass, field

from gpu_monitor.core.errors import FieldReadError, InvalidDeviceIndex, ProviderUnavailable
from gpu_monitor.data.provider import ProcessLists, TelemetryProvider
from gpu_monitor.models import DeviceMetrics, DeviceStaticInfo, MemoryInfo, RawProcess

MIB = 1024 * 1024
GIB = 1024 * MIB


@dataclass
class FakeDevice:
    name: str = "NVIDIA GeForce RTX 4090"
    metrics: DeviceMetrics = field(default_factory=DeviceMetrics)
    memory: MemoryInfo | None = field(default_factory=lambda: MemoryInfo(total=24 * GIB, used=6 * GIB, free=18 * GIB))
    compute: list[RawProcess] = field(default_factory=list)
    graphics: list[RawProcess] = field(default_factory=list)
    processes_fail: bool = False


class FakeProvider(TelemetryProvider):
    """Provider whose devices and failures are set directly by the test."""

    def __init__(self, devices: list[FakeDevice] | None = None) -> None:
        self.devices = list(devices) if devices is not None else [FakeDevice()]
        self.enumeration_error: str | None = None
        self.count_calls = 0
        self.shutdown_calls = 0

    def device_count(self) -> int:
        self.count_calls += 1
        if self.enumeration_error is not None:
            raise ProviderUnavailable(self.enumeration_error)
        return len(self.devices)

    def _device(self, index: int) -> FakeDevice:
        if not 0 <= index < len(self.devices):
            raise InvalidDeviceIndex(index)
        return self.devices[index]

    def device_static_info(self, index: int) -> DeviceStaticInfo:
        device = self._device(index)
        return DeviceStaticInfo(
            index=index,
            name=device.name,
            uuid=f"GPU-0000000{index}-fake",
            pci_bus_id=f"00000000:0{index + 1}:00.0",
            driver_version="550.54.14",
            cuda_version="12.4",
            power_limit=450,
            power_limit_max=600,
        )

    def device_metrics(self, index: int) -> DeviceMetrics:
        return self._device(index).metrics

    def device_memory(self, index: int) -> MemoryInfo:
        memory = self._device(index).memory
        if memory is None:
            raise FieldReadError(f"memory of GPU {index} unavailable")
        return memory

    def device_processes(self, index: int) -> ProcessLists:
        device = self._device(index)
        if device.processes_fail:
            raise FieldReadError(f"processes of GPU {index} unavailable")
        return list(device.compute), list(device.graphics)

    def shutdown(self) -> None:
        self.shutdown_calls += 1


def names(mapping: dict[int, str] | None = None):
    """Name resolver backed by a dict; unmapped PIDs resolve to ``proc-<pid>``."""

    mapping = mapping or {}

    def resolve(pid: int) -> str:
        return mapping.get(pid, f"proc-{pid}")

    return resolve
