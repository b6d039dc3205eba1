"""Telemetry provider interface consumed by the snapshot builder."""

from __future__ import annotations

from abc import ABC, abstractmethod

from gpu_monitor.models import DeviceMetrics, DeviceStaticInfo, MemoryInfo, RawProcess

ProcessLists = tuple[list[RawProcess], list[RawProcess]]


class TelemetryProvider(ABC):
    """Point-in-time access to device telemetry.

    ``device_count`` raises ``ProviderUnavailable`` when enumeration fails and
    ``device_static_info`` raises ``InvalidDeviceIndex`` for out-of-range
    indices. ``device_metrics`` never fails as a whole: each metric degrades to
    its default on its own. ``device_memory`` and ``device_processes`` raise
    ``FieldReadError`` when the field cannot be read.
    """

    @abstractmethod
    def device_count(self) -> int:
        """Return the number of enumerated devices."""

    @abstractmethod
    def device_static_info(self, index: int) -> DeviceStaticInfo:
        """Return identity and limits for one device."""

    @abstractmethod
    def device_metrics(self, index: int) -> DeviceMetrics:
        """Return the current metrics for one device."""

    @abstractmethod
    def device_memory(self, index: int) -> MemoryInfo:
        """Return the memory counters for one device."""

    @abstractmethod
    def device_processes(self, index: int) -> ProcessLists:
        """Return the ``(compute, graphics)`` process lists for one device."""

    def shutdown(self) -> None:
        """Release backend resources."""

    def __enter__(self) -> TelemetryProvider:
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()
