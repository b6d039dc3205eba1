"""Scroll offset for the process table."""

from __future__ import annotations

from collections.abc import Sequence

from gpu_monitor.models import DeviceSnapshot

from .config import CONFIG


def reference_process_count(snapshots: Sequence[DeviceSnapshot]) -> int:
    """Process count that bounds scrolling.

    Only the first device's list is used, even with several devices whose
    tables could scroll on their own. This is a known limitation: every
    table shares a single offset.
    """

    if not snapshots:
        return 0
    return len(snapshots[0].processes)


class ScrollController:
    """Keeps ``0 <= offset <= max(0, process_count - visible_rows)``."""

    def __init__(self, visible_rows: int = CONFIG.scroll.visible_rows) -> None:
        if visible_rows < 1:
            raise ValueError("visible_rows must be positive")
        self.visible_rows = visible_rows
        self.offset = 0
        self._process_count = 0

    @property
    def process_count(self) -> int:
        return self._process_count

    def max_scroll(self, process_count: int | None = None) -> int:
        count = self._process_count if process_count is None else process_count
        return max(0, count - self.visible_rows)

    def on_refresh(self, process_count: int) -> int:
        self._process_count = process_count
        if process_count <= self.visible_rows:
            self.offset = 0
        else:
            self.offset = min(self.offset, self.max_scroll())
        return self.offset

    def scroll_down(self) -> int:
        if self.offset < self.max_scroll():
            self.offset += 1
        return self.offset

    def scroll_up(self) -> int:
        if self.offset > 0:
            self.offset -= 1
        return self.offset
