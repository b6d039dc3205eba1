"""Monitoring session: the live telemetry state machine behind every view."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from gpu_monitor.data.merger import NameResolver
from gpu_monitor.data.processes import resolve_process_name
from gpu_monitor.data.provider import TelemetryProvider
from gpu_monitor.data.snapshot import build_snapshots
from gpu_monitor.models import DeviceSnapshot, ProcessRecord

from .config import CONFIG, MonitorConfig
from .history import HistoryTracker
from .scheduler import RefreshScheduler
from .scroll import ScrollController, reference_process_count

logger = logging.getLogger(__name__)

QUIT_KEYS = frozenset({"q", "escape"})
SCROLL_UP_KEYS = frozenset({"up", "k"})
SCROLL_DOWN_KEYS = frozenset({"down", "j"})


@dataclass(frozen=True)
class MonitorView:
    """Read-only state handed to renderers."""

    snapshots: tuple[DeviceSnapshot, ...]
    utilization_history: tuple[tuple[int, ...], ...]
    memory_history: tuple[tuple[int, ...], ...]
    scroll_offset: int
    visible_rows: int

    def utilization(self, position: int) -> tuple[int, ...]:
        if position < len(self.utilization_history):
            return self.utilization_history[position]
        return ()

    def memory(self, position: int) -> tuple[int, ...]:
        if position < len(self.memory_history):
            return self.memory_history[position]
        return ()

    def visible_processes(self, position: int) -> tuple[ProcessRecord, ...]:
        processes = self.snapshots[position].processes
        return processes[self.scroll_offset:self.scroll_offset + self.visible_rows]


class MonitorSession:
    """Owns snapshots, history, scroll position and refresh cadence.

    Everything here runs on one thread. A refresh builds the new snapshot
    set first, then feeds the history tracker and the scroll controller,
    then swaps the committed tuple, so a renderer never sees a half-built
    set. Enumeration failures (``ProviderUnavailable``, ``NoDevicesFound``)
    propagate to the caller; field failures were already absorbed by the
    snapshot builder.
    """

    def __init__(
        self,
        provider: TelemetryProvider,
        config: MonitorConfig = CONFIG,
        resolve_name: NameResolver = resolve_process_name,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.provider = provider
        self.config = config
        self.resolve_name = resolve_name
        self.history = HistoryTracker(depth=config.history.depth)
        self.scroll = ScrollController(visible_rows=config.scroll.visible_rows)
        self.scheduler = RefreshScheduler(config.refresh.interval, clock=clock)
        self._snapshots: tuple[DeviceSnapshot, ...] = ()
        self.quit_requested = False

    @property
    def snapshots(self) -> tuple[DeviceSnapshot, ...]:
        return self._snapshots

    def refresh(self) -> tuple[DeviceSnapshot, ...]:
        snapshots = tuple(build_snapshots(self.provider, self.resolve_name))
        self.history.update(snapshots)
        self.scroll.on_refresh(reference_process_count(snapshots))
        self._snapshots = snapshots
        logger.debug("Refreshed %d device(s)", len(snapshots))
        return snapshots

    def step(self) -> bool:
        """Refresh if the interval elapsed; return whether a refresh ran."""

        if not self.scheduler.is_due():
            return False
        self.scheduler.run(self.refresh)
        return True

    def request_quit(self) -> None:
        self.quit_requested = True

    def handle_key(self, key: str) -> None:
        """Apply one key press. Unbound keys are ignored."""

        if key in QUIT_KEYS:
            self.request_quit()
        elif key in SCROLL_UP_KEYS:
            self.scroll.scroll_up()
        elif key in SCROLL_DOWN_KEYS:
            self.scroll.scroll_down()

    def view(self) -> MonitorView:
        return MonitorView(
            snapshots=self._snapshots,
            utilization_history=self.history.utilization_series,
            memory_history=self.history.memory_series,
            scroll_offset=self.scroll.offset,
            visible_rows=self.scroll.visible_rows,
        )

    def run(
        self,
        render: Callable[[MonitorView], None],
        poll_key: Callable[[float], str | None],
    ) -> None:
        """Cooperative loop: refresh if due, render, then wait briefly for a key.

        ``poll_key`` must return within the timeout it is given, yielding a
        pressed key name or ``None``. A quit key is honoured at the top of the
        next iteration.
        """

        timeout = self.config.refresh.input_poll
        while not self.quit_requested:
            self.step()
            render(self.view())
            key = poll_key(timeout)
            if key is not None:
                self.handle_key(key)
