"""HTTP API package for the GPU monitor."""

from __future__ import annotations

__all__ = [
    "create_app",
]

from .server import create_app  # noqa: E402
