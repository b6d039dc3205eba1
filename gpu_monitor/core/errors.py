"""Exception hierarchy shared by the providers, the session and the outputs."""

from __future__ import annotations


class GpuMonitorError(Exception):
    """Base class for every error raised by gpu_monitor."""


class ProviderUnavailable(GpuMonitorError):
    """The telemetry backend could not be initialized or enumerated."""


class NoDevicesFound(GpuMonitorError):
    """Enumeration succeeded but reported zero devices."""

    def __init__(self, message: str = "No NVIDIA GPU devices found") -> None:
        super().__init__(message)


class InvalidDeviceIndex(GpuMonitorError):
    """A direct lookup asked for a device index outside the enumerated range."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Invalid GPU device index: {index}")
        self.index = index


class FieldReadError(GpuMonitorError):
    """A single telemetry field could not be read.

    Providers raise it for one field at a time; the snapshot builder turns it
    into the field's default value and never lets it escape.
    """


class SerializationFailure(GpuMonitorError):
    """A snapshot could not be encoded for output."""
