"""Background data collection for the HTTP API."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

from gpu_monitor.core import CONFIG
from gpu_monitor.core.errors import GpuMonitorError
from gpu_monitor.core.handle import MonitorHandle
from gpu_monitor.core.history import HistoryTracker
from gpu_monitor.models import DeviceSnapshot
from gpu_monitor.output import snapshots_payload

logger = logging.getLogger(__name__)


class DataCollector:
    """Polls the monitor handle and keeps rolling histories for the HTTP API.

    The handle's lock is held only while a query runs; the collector's own
    lock then guards the committed snapshot set and the history. An
    enumeration-level failure ends the polling loop: it is reported through
    the diagnostics and never retried.
    """

    def __init__(
        self,
        handle: MonitorHandle,
        interval: float = CONFIG.refresh.interval,
        history_depth: int = CONFIG.history.depth,
    ) -> None:
        self._handle = handle
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.RLock()
        self._history = HistoryTracker(depth=history_depth)
        self._snapshots: tuple[DeviceSnapshot, ...] = ()
        self._timestamp: float | None = None
        self._diagnostics: dict[str, Any] = {
            "last_run_started": None,
            "last_run_duration": 0.0,
            "last_success_at": None,
            "refresh_count": 0,
            "last_error": None,
            "stopped": False,
        }

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="GpuDataCollector", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread and thread.is_alive():
            thread.join(timeout=timeout)
        self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def collect_once(self) -> tuple[DeviceSnapshot, ...]:
        started = time.time()
        snapshots = tuple(self._handle.snapshots())
        with self._lock:
            self._history.update(snapshots)
            self._snapshots = snapshots
            self._timestamp = time.time()
            self._diagnostics["last_run_started"] = started
            self._diagnostics["last_run_duration"] = self._timestamp - started
            self._diagnostics["last_success_at"] = self._timestamp
            self._diagnostics["refresh_count"] += 1
        return snapshots

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "timestamp": self._timestamp,
                "gpus": snapshots_payload(self._snapshots),
                "diagnostics": dict(self._diagnostics),
            }

    def history(self) -> dict[str, Any]:
        with self._lock:
            utilization = self._history.utilization_series
            memory = self._history.memory_series
            return {
                "depth": self._history.depth,
                "gpus": [
                    {"position": position, "utilization": list(utilization[position]), "memory": list(memory[position])}
                    for position in range(len(utilization))
                ],
            }

    def _run(self) -> None:
        while not self._stop.is_set():
            start_time = time.perf_counter()
            try:
                self.collect_once()
            except GpuMonitorError as exc:
                logger.error("GPU collection stopped: %s", exc)
                self._record_failure(exc)
                return
            elapsed = time.perf_counter() - start_time
            self._stop.wait(max(0.1, self._interval - elapsed))

    def _record_failure(self, error: Exception) -> None:
        with self._lock:
            self._diagnostics["stopped"] = True
            self._diagnostics["last_error"] = {
                "message": str(error),
                "type": error.__class__.__name__,
                "timestamp": time.time(),
            }
