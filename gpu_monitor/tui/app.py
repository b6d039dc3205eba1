"""Textual application driving a MonitorSession."""

from __future__ import annotations

import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header, Static

from gpu_monitor.core import APP_NAME
from gpu_monitor.core.errors import GpuMonitorError
from gpu_monitor.core.session import MonitorSession, MonitorView

from .widgets import GpuCard

logger = logging.getLogger(__name__)


class GpuMonitorApp(App):
    """Live GPU view.

    Textual's event loop is the bounded input wait: every ``input_poll``
    seconds the tick checks the quit flag, lets the session refresh when the
    interval has elapsed, and redraws. Key bindings only touch the session.
    """

    CSS = """
    Screen {
        background: $background;
    }

    #cards {
        width: 100%;
        height: auto;
        padding: 0 1;
    }

    #placeholder {
        color: $warning;
        padding: 1;
    }
    """

    TITLE = APP_NAME

    BINDINGS = [
        Binding("q,escape", "request_quit", "Quit", priority=True),
        Binding("up,k", "scroll_up", "Scroll up", priority=True),
        Binding("down,j", "scroll_down", "Scroll down", priority=True),
    ]

    def __init__(self, session: MonitorSession) -> None:
        super().__init__()
        self.session = session
        self.failure: GpuMonitorError | None = None
        self._cards: list[GpuCard] = []

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="cards"):
            yield Static("Waiting for the first GPU sample...", id="placeholder")
        yield Footer()

    def on_mount(self) -> None:
        self.set_interval(self.session.config.refresh.input_poll, self._tick)
        self._tick()

    def _tick(self) -> None:
        if self.session.quit_requested:
            self.exit()
            return
        try:
            self.session.step()
        except GpuMonitorError as exc:
            logger.error("Refresh failed: %s", exc)
            self.failure = exc
            self.exit()
            return
        self._draw(self.session.view())

    def _draw(self, view: MonitorView) -> None:
        if not view.snapshots:
            return
        container = self.query_one("#cards", Vertical)
        if not self._cards:
            self.query("#placeholder").remove()
        while len(self._cards) < len(view.snapshots):
            card = GpuCard()
            self._cards.append(card)
            container.mount(card)
        for position, card in enumerate(self._cards):
            present = position < len(view.snapshots)
            card.display = present
            if present:
                card.show_device(
                    view.snapshots[position],
                    view.utilization(position),
                    view.memory(position),
                    view.visible_processes(position),
                )

    def action_request_quit(self) -> None:
        self.session.handle_key("q")

    def action_scroll_up(self) -> None:
        self.session.handle_key("up")
        self._draw(self.session.view())

    def action_scroll_down(self) -> None:
        self.session.handle_key("down")
        self._draw(self.session.view())
