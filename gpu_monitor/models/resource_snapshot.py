"""Dataclasses representing one device's telemetry at a point in time."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from .process_info import ProcessRecord

_MIB = 1024 * 1024
_GIB = 1024 * 1024 * 1024


class TemperatureStatus(str, Enum):
    COOL = "cool"  # up to 50 C
    NORMAL = "normal"  # 51-70 C
    WARM = "warm"  # 71-85 C
    HOT = "hot"  # above 85 C

    @property
    def color(self) -> str:
        """Cosmetic colour hint for renderers (rich/CSS colour name)."""

        return _TEMPERATURE_COLORS[self]


_TEMPERATURE_COLORS = {
    TemperatureStatus.COOL: "green",
    TemperatureStatus.NORMAL: "blue",
    TemperatureStatus.WARM: "yellow",
    TemperatureStatus.HOT: "red",
}


@dataclass(frozen=True, slots=True)
class DeviceStaticInfo:
    index: int
    name: str
    uuid: str
    pci_bus_id: str
    driver_version: str
    cuda_version: str | None = None
    power_limit: int = 0  # watts
    power_limit_max: int = 0  # watts


@dataclass(frozen=True, slots=True)
class DeviceMetrics:
    """Real-time metrics; every field falls back to zero (or None) when unreadable."""

    gpu_utilization: int = 0
    memory_utilization: int = 0
    encoder_utilization: int = 0
    decoder_utilization: int = 0
    temperature: int = 0  # Celsius
    power_usage: int = 0  # milliwatts
    fan_speed: int | None = None  # percent
    clock_graphics: int = 0  # MHz
    clock_memory: int = 0
    clock_sm: int = 0

    def power_watts(self) -> float:
        return self.power_usage / 1000.0

    def is_idle(self) -> bool:
        return self.gpu_utilization < 5

    def is_heavy_load(self) -> bool:
        return self.gpu_utilization > 80

    def temperature_status(self) -> TemperatureStatus:
        if self.temperature <= 50:
            return TemperatureStatus.COOL
        if self.temperature <= 70:
            return TemperatureStatus.NORMAL
        if self.temperature <= 85:
            return TemperatureStatus.WARM
        return TemperatureStatus.HOT


@dataclass(frozen=True, slots=True)
class MemoryInfo:
    """Device memory in bytes, trusted as reported (used + free may differ from total)."""

    total: int = 0
    used: int = 0
    free: int = 0

    def usage_percent(self) -> float:
        if self.total == 0:
            return 0.0
        return self.used / self.total * 100.0

    @property
    def total_mib(self) -> int:
        return self.total // _MIB

    @property
    def used_mib(self) -> int:
        return self.used // _MIB

    @property
    def free_mib(self) -> int:
        return self.free // _MIB

    @property
    def total_gib(self) -> float:
        return self.total / _GIB

    @property
    def used_gib(self) -> float:
        return self.used / _GIB


@dataclass(frozen=True, slots=True)
class DeviceSnapshot:
    device: DeviceStaticInfo
    metrics: DeviceMetrics
    memory: MemoryInfo
    processes: tuple[ProcessRecord, ...] = field(default_factory=tuple)

    @property
    def index(self) -> int:
        return self.device.index

    def to_dict(self) -> dict[str, Any]:
        return {
            "device": asdict(self.device),
            "metrics": asdict(self.metrics),
            "memory": asdict(self.memory),
            "processes": [process.to_dict() for process in self.processes],
        }
