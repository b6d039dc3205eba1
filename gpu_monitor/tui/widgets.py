"""Widgets for the terminal view."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from textual.widgets import Static

from gpu_monitor.models import DeviceSnapshot, ProcessRecord

# Characters for drawing (increasing fill)
SPARK_CHARS = " ▁▂▃▄▅▆▇█"
SPARK_WIDTH = 60


def sparkline(values: Iterable[int], width: int = SPARK_WIDTH, max_value: int = 100) -> str:
    """Render the newest ``width`` samples right-aligned on a block ramp."""

    if width <= 0:
        return ""
    data = list(values)[-width:]
    top = len(SPARK_CHARS) - 1
    chars = []
    for value in data:
        clamped = min(max(value, 0), max_value)
        chars.append(SPARK_CHARS[round(clamped / max_value * top)] if max_value > 0 else SPARK_CHARS[0])
    return "".join(chars).rjust(width)


def load_color(percent: float, calm: str = "green") -> str:
    if percent > 80:
        return "red"
    if percent > 50:
        return "yellow"
    return calm


def _truncate(text: str, max_len: int) -> str:
    return text if len(text) <= max_len else f"{text[:max_len - 3]}..."


def _metrics_group(snapshot: DeviceSnapshot, utilization: Sequence[int], memory: Sequence[int]) -> Group:
    metrics = snapshot.metrics
    status = metrics.temperature_status()
    fan = f"{metrics.fan_speed}%" if metrics.fan_speed is not None else "N/A"

    info = Text()
    info.append("Temp: ")
    info.append(f"{metrics.temperature}°C", style=status.color)
    info.append("  Power: ")
    info.append(f"{metrics.power_watts():.0f}W", style="yellow")
    info.append("  Fan: ")
    info.append(fan, style="cyan")
    info.append("  Clock: ")
    info.append(f"{metrics.clock_graphics}MHz", style="magenta")

    mem = snapshot.memory
    mem_percent = mem.usage_percent()
    gpu_color = load_color(metrics.gpu_utilization)
    mem_color = load_color(mem_percent, calm="cyan")
    return Group(
        info,
        Text(""),
        Text(f"GPU Load: {metrics.gpu_utilization}%"),
        Text(sparkline(utilization), style=gpu_color),
        Text(f"Memory: {mem.used_gib:.1f} / {mem.total_gib:.1f} GiB ({mem_percent:.0f}%)"),
        Text(sparkline(memory), style=mem_color),
    )


def process_table(processes: Sequence[ProcessRecord], total: int) -> Table:
    table = Table(title=f"Processes ({total})", header_style="bold cyan", box=None, expand=True)
    table.add_column("PID", justify="right", width=7)
    table.add_column("Name", ratio=1)
    table.add_column("Mem", justify="right", width=8)
    table.add_column("Type", width=5)
    for process in processes:
        table.add_row(
            str(process.pid),
            _truncate(process.name, 15),
            f"{process.gpu_memory_mib}M",
            process.process_type.short_label,
        )
    return table


def render_gpu_card(
    snapshot: DeviceSnapshot,
    utilization: Sequence[int],
    memory: Sequence[int],
    visible_processes: Sequence[ProcessRecord],
) -> Panel:
    layout = Table.grid(expand=True)
    layout.add_column(ratio=65)
    layout.add_column(ratio=35)
    layout.add_row(
        _metrics_group(snapshot, utilization, memory),
        process_table(visible_processes, len(snapshot.processes)),
    )
    title = Text(f" GPU {snapshot.device.index}: {snapshot.device.name} ", style="bold white")
    return Panel(layout, title=title, title_align="left", border_style="blue")


class GpuCard(Static):
    """One device: info row, two sparklines and the process table."""

    DEFAULT_CSS = """
    GpuCard {
        width: 1fr;
        height: auto;
        min-height: 12;
    }
    """

    def show_device(
        self,
        snapshot: DeviceSnapshot,
        utilization: Sequence[int],
        memory: Sequence[int],
        visible_processes: Sequence[ProcessRecord],
    ) -> None:
        self.update(render_gpu_card(snapshot, utilization, memory, visible_processes))
