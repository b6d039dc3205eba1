"""Terminal view."""

from .app import GpuMonitorApp
from .widgets import GpuCard, render_gpu_card, sparkline

__all__ = ["GpuCard", "GpuMonitorApp", "render_gpu_card", "sparkline"]
