"""Build immutable per-device snapshots from one provider query."""

from __future__ import annotations

import logging

from gpu_monitor.core.errors import FieldReadError, InvalidDeviceIndex, NoDevicesFound
from gpu_monitor.models import DeviceSnapshot, MemoryInfo

from .merger import NameResolver, merge_processes
from .processes import resolve_process_name
from .provider import TelemetryProvider

logger = logging.getLogger(__name__)


def build_device_snapshot(
    provider: TelemetryProvider,
    index: int,
    resolve_name: NameResolver = resolve_process_name,
) -> DeviceSnapshot:
    """Query one device. Memory and process failures degrade to empty values."""

    device = provider.device_static_info(index)
    metrics = provider.device_metrics(index)

    try:
        memory = provider.device_memory(index)
    except FieldReadError as exc:
        logger.debug("GPU %s memory degraded to zero: %s", index, exc)
        memory = MemoryInfo()

    try:
        compute, graphics = provider.device_processes(index)
    except FieldReadError as exc:
        logger.debug("GPU %s process lists degraded to empty: %s", index, exc)
        compute, graphics = [], []

    return DeviceSnapshot(
        device=device,
        metrics=metrics,
        memory=memory,
        processes=tuple(merge_processes(compute, graphics, resolve_name)),
    )


def build_snapshots(
    provider: TelemetryProvider,
    resolve_name: NameResolver = resolve_process_name,
) -> list[DeviceSnapshot]:
    """Query every enumerated device.

    Raises ``ProviderUnavailable`` when enumeration fails and
    ``NoDevicesFound`` when it reports zero devices.
    """

    count = provider.device_count()
    if count == 0:
        raise NoDevicesFound()
    return [build_device_snapshot(provider, index, resolve_name) for index in range(count)]


def lookup_device_snapshot(
    provider: TelemetryProvider,
    index: int,
    resolve_name: NameResolver = resolve_process_name,
) -> DeviceSnapshot:
    """Direct lookup of one device, validating the index against the device count."""

    count = provider.device_count()
    if not 0 <= index < count:
        raise InvalidDeviceIndex(index)
    return build_device_snapshot(provider, index, resolve_name)
