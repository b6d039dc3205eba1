"""Lock-guarded monitor handle for concurrent consumers (HTTP handlers, collector)."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from gpu_monitor.data.merger import NameResolver
from gpu_monitor.data.nvml import NvmlProvider
from gpu_monitor.data.processes import resolve_process_name
from gpu_monitor.data.provider import TelemetryProvider
from gpu_monitor.data.snapshot import build_snapshots, lookup_device_snapshot
from gpu_monitor.models import DeviceSnapshot

from .errors import ProviderUnavailable

logger = logging.getLogger(__name__)


class MonitorHandle:
    """Owns one provider and serializes every query through a mutex.

    The provider is created once. If that fails the handle stays
    uninitialized for its whole lifetime: each call checks again and raises
    ``ProviderUnavailable`` rather than retrying. The lock covers a single
    query and is released before callers render or sleep.
    """

    def __init__(
        self,
        provider_factory: Callable[[], TelemetryProvider] = NvmlProvider,
        resolve_name: NameResolver = resolve_process_name,
    ) -> None:
        self._lock = threading.Lock()
        self._resolve_name = resolve_name
        self._init_error: str | None = None
        self._provider: TelemetryProvider | None
        try:
            self._provider = provider_factory()
        except ProviderUnavailable as exc:
            logger.warning("GPU monitor not initialized: %s", exc)
            self._provider = None
            self._init_error = str(exc)

    @property
    def init_error(self) -> str | None:
        return self._init_error

    def _require_provider(self) -> TelemetryProvider:
        if self._provider is None:
            message = "GPU monitor not initialized. Make sure NVIDIA drivers are installed."
            if self._init_error:
                message = f"{message} ({self._init_error})"
            raise ProviderUnavailable(message)
        return self._provider

    def is_available(self) -> bool:
        with self._lock:
            return self._provider is not None

    def device_count(self) -> int:
        with self._lock:
            return self._require_provider().device_count()

    def snapshots(self) -> list[DeviceSnapshot]:
        with self._lock:
            return build_snapshots(self._require_provider(), self._resolve_name)

    def device_snapshot(self, index: int) -> DeviceSnapshot:
        with self._lock:
            return lookup_device_snapshot(self._require_provider(), index, self._resolve_name)

    def close(self) -> None:
        with self._lock:
            if self._provider is not None:
                self._provider.shutdown()
                self._provider = None
                self._init_error = "monitor closed"
