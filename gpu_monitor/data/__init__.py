"""Data provider package."""

from .merger import merge_entry, merge_processes
from .nvml import NvmlProvider
from .processes import resolve_process_name
from .provider import TelemetryProvider
from .snapshot import build_device_snapshot, build_snapshots, lookup_device_snapshot

__all__ = [
    "NvmlProvider",
    "TelemetryProvider",
    "build_device_snapshot",
    "build_snapshots",
    "lookup_device_snapshot",
    "merge_entry",
    "merge_processes",
    "resolve_process_name",
]
