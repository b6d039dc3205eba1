"""Process data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

_MIB = 1024 * 1024


class ProcessType(str, Enum):
    """How a process was observed on a device."""

    GRAPHICS = "Graphics"
    COMPUTE = "Compute"
    MIXED = "Mixed"
    UNKNOWN = "Unknown"

    @property
    def short_label(self) -> str:
        return _SHORT_LABELS[self]

    def __str__(self) -> str:
        return self.value


_SHORT_LABELS = {
    ProcessType.GRAPHICS: "Gfx",
    ProcessType.COMPUTE: "Comp",
    ProcessType.MIXED: "Mix",
    ProcessType.UNKNOWN: "?",
}


@dataclass(frozen=True, slots=True)
class RawProcess:
    """One entry of a compute or graphics process list as the provider reports it."""

    pid: int
    used_memory: int | None  # None when the driver cannot attribute memory


@dataclass(frozen=True, slots=True)
class ProcessRecord:
    pid: int
    name: str
    gpu_memory: int  # bytes
    process_type: ProcessType = ProcessType.UNKNOWN

    @property
    def gpu_memory_mib(self) -> int:
        return self.gpu_memory // _MIB

    def to_dict(self) -> dict[str, Any]:
        return {
            "pid": self.pid,
            "name": self.name,
            "gpu_memory_bytes": self.gpu_memory,
            "type": self.process_type.value,
        }
