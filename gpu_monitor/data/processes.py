"""Best-effort PID to process-name resolution."""

from __future__ import annotations

import psutil

from gpu_monitor.core.config import UNKNOWN_PROCESS_NAME


def resolve_process_name(pid: int) -> str:
    """Return the executable name for ``pid`` or ``"unknown"``."""

    try:
        name = psutil.Process(pid).name()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return UNKNOWN_PROCESS_NAME
    return name.strip() or UNKNOWN_PROCESS_NAME
