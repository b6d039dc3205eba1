"""Merge the compute and graphics process lists of one device."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from gpu_monitor.core.config import UNKNOWN_PROCESS_NAME
from gpu_monitor.models import ProcessRecord, ProcessType, RawProcess

logger = logging.getLogger(__name__)

NameResolver = Callable[[int], str]


def merge_entry(
    existing_type: ProcessType | None,
    existing_memory: int | None,
    incoming_type: ProcessType | None,
    incoming_memory: int | None,
) -> tuple[ProcessType, int]:
    """Combine two observations of the same PID.

    Seeing a process through both queries makes it ``Mixed``. Memory is the
    maximum of the two readings, never the sum: both queries usually report
    the same allocation. Missing readings count as zero.
    """

    memory = max(existing_memory or 0, incoming_memory or 0)
    kinds = {kind for kind in (existing_type, incoming_type) if kind not in (None, ProcessType.UNKNOWN)}
    if not kinds:
        return ProcessType.UNKNOWN, memory
    if len(kinds) == 1:
        return kinds.pop(), memory
    return ProcessType.MIXED, memory


def _safe_name(resolve_name: NameResolver, pid: int) -> str:
    try:
        name = resolve_name(pid)
    except Exception as exc:
        logger.debug("Name lookup for pid %s failed: %s", pid, exc)
        return UNKNOWN_PROCESS_NAME
    return name or UNKNOWN_PROCESS_NAME


def merge_processes(
    compute: Iterable[RawProcess],
    graphics: Iterable[RawProcess],
    resolve_name: NameResolver,
) -> list[ProcessRecord]:
    """Return one record per PID, sorted by GPU memory descending.

    The sort is stable so rows with equal memory keep their order between
    refreshes.
    """

    merged: dict[int, tuple[ProcessType, int]] = {}
    for source_type, entries in ((ProcessType.COMPUTE, compute), (ProcessType.GRAPHICS, graphics)):
        for raw in entries:
            kind, memory = merged.get(raw.pid, (None, None))
            merged[raw.pid] = merge_entry(kind, memory, source_type, raw.used_memory)

    records = [
        ProcessRecord(pid=pid, name=_safe_name(resolve_name, pid), gpu_memory=memory, process_type=kind)
        for pid, (kind, memory) in merged.items()
    ]
    return sorted(records, key=lambda record: record.gpu_memory, reverse=True)
