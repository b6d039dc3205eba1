"""Fixed-depth rolling series used by the sparklines."""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from typing import Deque

from gpu_monitor.models import DeviceSnapshot

from .config import CONFIG


class HistoryTracker:
    """Per-device utilization and memory-usage series.

    Position ``i`` of each collection matches device ``i`` of the latest
    snapshot set. The collections grow with the device count and never
    shrink, so a device that drops out of one enumeration keeps its trend.
    """

    def __init__(self, depth: int = CONFIG.history.depth) -> None:
        if depth < 1:
            raise ValueError("history depth must be positive")
        self.depth = depth
        self._utilization: list[Deque[int]] = []
        self._memory: list[Deque[int]] = []

    def __len__(self) -> int:
        return len(self._utilization)

    def update(self, snapshots: Sequence[DeviceSnapshot]) -> None:
        while len(self._utilization) < len(snapshots):
            self._utilization.append(deque(maxlen=self.depth))
            self._memory.append(deque(maxlen=self.depth))

        # deque(maxlen) evicts the oldest sample before appending at capacity.
        for position, snapshot in enumerate(snapshots):
            self._utilization[position].append(int(snapshot.metrics.gpu_utilization))
            self._memory[position].append(int(snapshot.memory.usage_percent()))

    def utilization(self, position: int) -> list[int]:
        if position >= len(self._utilization):
            return []
        return list(self._utilization[position])

    def memory(self, position: int) -> list[int]:
        if position >= len(self._memory):
            return []
        return list(self._memory[position])

    @property
    def utilization_series(self) -> tuple[tuple[int, ...], ...]:
        return tuple(tuple(series) for series in self._utilization)

    @property
    def memory_series(self) -> tuple[tuple[int, ...], ...]:
        return tuple(tuple(series) for series in self._memory)
