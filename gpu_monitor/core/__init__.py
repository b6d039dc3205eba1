"""Core state machine and configuration for the GPU monitor."""

from __future__ import annotations

from .config import APP_NAME, CONFIG, SECURITY, SERVER, MonitorConfig
from .errors import (
    FieldReadError,
    GpuMonitorError,
    InvalidDeviceIndex,
    NoDevicesFound,
    ProviderUnavailable,
    SerializationFailure,
)

__all__ = [
    "APP_NAME",
    "CONFIG",
    "SECURITY",
    "SERVER",
    "MonitorConfig",
    "FieldReadError",
    "GpuMonitorError",
    "InvalidDeviceIndex",
    "NoDevicesFound",
    "ProviderUnavailable",
    "SerializationFailure",
]
