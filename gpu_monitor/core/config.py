"""Global configuration values for the GPU monitor."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RefreshConfig:
    """Sampling and input polling cadence (in milliseconds)."""

    interval_ms: int = 1000  # time between telemetry refreshes
    input_poll_ms: int = 100  # bounded wait for a key press per loop iteration

    @property
    def interval(self) -> float:
        return self.interval_ms / 1000.0

    @property
    def input_poll(self) -> float:
        return self.input_poll_ms / 1000.0


@dataclass(frozen=True)
class HistoryConfig:
    """Depth of the rolling sparkline series."""

    depth: int = 60  # samples per device


@dataclass(frozen=True)
class ScrollConfig:
    """Process table geometry used to bound the scroll offset."""

    visible_rows: int = 10


@dataclass(frozen=True)
class MonitorConfig:
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    scroll: ScrollConfig = field(default_factory=ScrollConfig)


@dataclass(frozen=True)
class ServerConfig:
    """Bind address for the HTTP API."""

    host: str = "127.0.0.1"
    port: int = 8080
    port_attempts: int = 10


@dataclass(frozen=True)
class SecurityConfig:
    """Security-related defaults for the HTTP API."""

    allowed_origins: tuple[str, ...] = ("http://127.0.0.1:8080", "http://localhost:8080")
    enable_rate_limit: bool = True
    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60


APP_NAME = "GPU Monitor"
LOG_LEVEL_ENV = "GPU_MONITOR_LOG_LEVEL"
UNKNOWN_PROCESS_NAME = "unknown"
CONFIG = MonitorConfig()
SERVER = ServerConfig()
SECURITY = SecurityConfig()
