"""Plain-text and JSON renderings of snapshot sets."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from gpu_monitor.core.errors import SerializationFailure
from gpu_monitor.core.scheduler import RefreshScheduler
from gpu_monitor.data.merger import NameResolver
from gpu_monitor.data.processes import resolve_process_name
from gpu_monitor.data.provider import TelemetryProvider
from gpu_monitor.data.snapshot import build_snapshots
from gpu_monitor.models import DeviceSnapshot

logger = logging.getLogger(__name__)

_BOX_WIDTH = 61


def truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return f"{text[:max_len - 3]}..."


def dump_json(payload: Any, pretty: bool = False) -> str:
    try:
        if pretty:
            return json.dumps(payload, indent=2, ensure_ascii=False)
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise SerializationFailure(f"Failed to encode snapshot: {exc}") from exc


def snapshots_payload(snapshots: Sequence[DeviceSnapshot]) -> list[dict[str, Any]]:
    return [snapshot.to_dict() for snapshot in snapshots]


def processes_payload(snapshots: Sequence[DeviceSnapshot]) -> list[dict[str, Any]]:
    """Flatten every device's process list into one array."""

    return [
        {
            "gpu_index": snapshot.device.index,
            "pid": process.pid,
            "name": process.name,
            "gpu_memory_mib": process.gpu_memory_mib,
            "type": process.process_type.value,
        }
        for snapshot in snapshots
        for process in snapshot.processes
    ]


def _row(content: str) -> str:
    return f"│ {content:<{_BOX_WIDTH - 1}}│"


def format_gpu_report(snapshots: Sequence[DeviceSnapshot]) -> str:
    """Boxed, nvidia-smi style summary of every device."""

    rule = "─" * _BOX_WIDTH
    lines: list[str] = []
    for snapshot in snapshots:
        device, metrics, memory = snapshot.device, snapshot.metrics, snapshot.memory
        lines.append(f"╭{rule}╮")
        lines.append(_row(f"GPU {device.index}: {truncate(device.name, 50)}"))
        lines.append(f"├{rule}┤")
        lines.append(_row(
            f"GPU Usage:    {metrics.gpu_utilization:>3}%    "
            f"Memory: {memory.used_gib:>5.1f}/{memory.total_gib:.1f} GiB ({memory.usage_percent():>3.0f}%)"
        ))
        lines.append(_row(
            f"Temperature:  {metrics.temperature:>3}°C   "
            f"Power:  {metrics.power_watts():>5.1f}/{device.power_limit} W"
        ))
        if metrics.fan_speed is not None:
            lines.append(_row(f"Fan Speed:    {metrics.fan_speed:>3}%"))
        lines.append(_row(
            f"Clocks:       Graphics {metrics.clock_graphics:>4} MHz  Memory {metrics.clock_memory:>4} MHz"
        ))
        if snapshot.processes:
            lines.append(f"├{rule}┤")
            lines.append(_row("Processes:"))
            for process in snapshot.processes:
                lines.append(_row(
                    f"  {process.pid:>6}  {truncate(process.name, 28):<28} "
                    f"{process.gpu_memory_mib:>6} MiB {process.process_type.short_label:>5}"
                ))
        lines.append(f"╰{rule}╯")
    return "\n".join(lines)


def format_process_table(snapshots: Sequence[DeviceSnapshot]) -> str:
    lines = [
        "╭───────┬────────┬────────────────────────────┬─────────┬──────╮",
        "│  GPU  │   PID  │ Name                       │ Memory  │ Type │",
        "├───────┼────────┼────────────────────────────┼─────────┼──────┤",
    ]
    for snapshot in snapshots:
        for process in snapshot.processes:
            lines.append(
                f"│  {snapshot.device.index:>3}  │ {process.pid:>6} │ {truncate(process.name, 26):<26} │"
                f" {process.gpu_memory_mib:>5} M │ {process.process_type.short_label:>4} │"
            )
    lines.append("╰───────┴────────┴────────────────────────────┴─────────┴──────╯")
    return "\n".join(lines)


def watch_json(
    provider: TelemetryProvider,
    interval: float,
    write: Callable[[str], None],
    *,
    resolve_name: NameResolver = resolve_process_name,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    max_samples: int | None = None,
) -> int:
    """Emit one compact JSON document per sample until stopped.

    Enumeration failures end the stream by propagating. Returns the number
    of documents written (only reached when ``max_samples`` is set).
    """

    scheduler = RefreshScheduler(interval, clock=clock)
    emitted = 0
    while max_samples is None or emitted < max_samples:
        if not scheduler.is_due():
            sleep(scheduler.time_until_due())
            continue
        snapshots = scheduler.run(lambda: build_snapshots(provider, resolve_name))
        write(dump_json(snapshots_payload(snapshots)))
        emitted += 1
    logger.debug("JSON stream stopped after %d sample(s)", emitted)
    return emitted
