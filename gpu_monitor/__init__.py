"""Real-time NVIDIA GPU monitoring: live snapshots, rolling history and process tables."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "core",
    "data",
    "models",
]
