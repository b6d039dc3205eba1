"""Telemetry data structures."""

from __future__ import annotations

from .process_info import ProcessRecord, ProcessType, RawProcess
from .resource_snapshot import (
    DeviceMetrics,
    DeviceSnapshot,
    DeviceStaticInfo,
    MemoryInfo,
    TemperatureStatus,
)

__all__ = [
    "DeviceMetrics",
    "DeviceSnapshot",
    "DeviceStaticInfo",
    "MemoryInfo",
    "ProcessRecord",
    "ProcessType",
    "RawProcess",
    "TemperatureStatus",
]
