"""HTTP server exposing GPU telemetry as JSON."""

from __future__ import annotations

import errno
import json
import logging
import re
import threading
import time
from collections import deque
from functools import partial
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, ClassVar, Deque, Optional
from urllib.parse import urlsplit

from gpu_monitor.core import CONFIG, SECURITY, SERVER
from gpu_monitor.core.config import SecurityConfig
from gpu_monitor.core.errors import (
    GpuMonitorError,
    InvalidDeviceIndex,
    NoDevicesFound,
    ProviderUnavailable,
    SerializationFailure,
)
from gpu_monitor.core.handle import MonitorHandle
from gpu_monitor.output import dump_json, snapshots_payload

from .collector import DataCollector

logger = logging.getLogger(__name__)

_DEVICE_PATH = re.compile(r"^/api/gpus/(\d+)$")


class GpuMonitorRequestHandler(BaseHTTPRequestHandler):
    """Serves the JSON API backed by a shared monitor handle."""

    server_version: ClassVar[str] = "GpuMonitor/1.0"
    _rate_lock: ClassVar[threading.Lock] = threading.Lock()
    _request_log: ClassVar[dict[str, Deque[float]]] = {}

    def __init__(
        self,
        *args: Any,
        monitor_handle: MonitorHandle,
        data_collector: DataCollector,
        security_config: SecurityConfig = SECURITY,
        **kwargs: Any,
    ) -> None:
        self._handle = monitor_handle
        self._collector = data_collector
        self._security = security_config
        self._response_origin: Optional[str] = None
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:  # noqa: N802
        self._response_origin = None
        path = urlsplit(self.path).path.rstrip("/") or "/"
        if not path.startswith("/api/"):
            self._send_error(HTTPStatus.NOT_FOUND, "not_found", f"Unknown path {path}")
            return
        if not self._prepare_api_request():
            return

        if path == "/api/available":
            self._send_json({"available": self._handle.is_available()})
        elif path == "/api/gpus":
            self._send_query(lambda: snapshots_payload(self._handle.snapshots()))
        elif path == "/api/gpus/count":
            self._send_query(lambda: {"count": self._handle.device_count()})
        elif path == "/api/current":
            self._send_json(self._collector.snapshot())
        elif path == "/api/history":
            self._send_json(self._collector.history())
        elif match := _DEVICE_PATH.match(path):
            index = int(match.group(1))
            self._send_query(lambda: self._handle.device_snapshot(index).to_dict())
        else:
            self._send_error(HTTPStatus.NOT_FOUND, "not_found", f"Unknown path {path}")

    def do_OPTIONS(self) -> None:  # noqa: N802
        allowed, origin = self._resolve_origin()
        if not allowed:
            return
        self._response_origin = origin
        self.send_response(HTTPStatus.NO_CONTENT)
        self._apply_cors_headers(origin)
        self.send_header("Access-Control-Allow-Methods", "GET, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Max-Age", "600")
        self.end_headers()

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A003 - parity with BaseHTTPRequestHandler
        logger.debug("%s - %s", self.client_address[0], format % args)

    def _send_query(self, query: Any) -> None:
        try:
            payload = query()
        except InvalidDeviceIndex as exc:
            self._send_error(HTTPStatus.NOT_FOUND, "invalid_device", str(exc))
        except NoDevicesFound as exc:
            self._send_error(HTTPStatus.SERVICE_UNAVAILABLE, "no_devices", str(exc))
        except ProviderUnavailable as exc:
            self._send_error(HTTPStatus.SERVICE_UNAVAILABLE, "provider_unavailable", str(exc))
        except GpuMonitorError as exc:
            logger.exception("GPU query failed", exc_info=exc)
            self._send_error(HTTPStatus.INTERNAL_SERVER_ERROR, "query_failed", str(exc))
        else:
            self._send_json(payload)

    def _send_json(self, payload: Any, status: HTTPStatus = HTTPStatus.OK) -> None:
        try:
            body = dump_json(payload).encode("utf-8")
        except SerializationFailure as exc:
            logger.error("%s", exc)
            status = HTTPStatus.INTERNAL_SERVER_ERROR
            body = json.dumps({"error": "serialization", "message": str(exc)}).encode("utf-8")
        self.send_response(status)
        self._apply_cors_headers(self._response_origin)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_error(self, status: HTTPStatus, code: str, message: str) -> None:
        self._send_json({"error": code, "message": message}, status=status)

    def _prepare_api_request(self) -> bool:
        allowed, origin = self._resolve_origin()
        if not allowed:
            return False
        self._response_origin = origin
        if not self._enforce_rate_limit():
            return False
        return True

    def _resolve_origin(self) -> tuple[bool, Optional[str]]:
        origin = self.headers.get("Origin")
        allowed = self._security.allowed_origins
        if origin:
            if "*" in allowed:
                return True, "*"
            if origin in allowed:
                return True, origin
            self._respond_forbidden("Origin not allowed")
            return False, None
        if "*" in allowed:
            return True, "*"
        return True, None

    def _apply_cors_headers(self, origin: Optional[str]) -> None:
        if origin:
            self.send_header("Access-Control-Allow-Origin", origin)
        self.send_header("Vary", "Origin")

    def _enforce_rate_limit(self) -> bool:
        if not self._security.enable_rate_limit:
            return True
        client_ip = self.client_address[0]
        now = time.monotonic()
        window = max(1, self._security.rate_limit_window_seconds)
        max_requests = max(1, self._security.rate_limit_requests)
        with self._rate_lock:
            bucket = self._request_log.setdefault(client_ip, deque())
            while bucket and now - bucket[0] > window:
                bucket.popleft()
            if len(bucket) >= max_requests:
                self._too_many_requests()
                return False
            bucket.append(now)
        return True

    def _too_many_requests(self) -> None:
        retry_after = str(self._security.rate_limit_window_seconds)
        body = json.dumps({"error": "rate_limit", "retry_after": retry_after}).encode("utf-8")
        logger.warning("Rate limit exceeded for %s", self.client_address[0])
        self.send_response(HTTPStatus.TOO_MANY_REQUESTS)
        self._apply_cors_headers(self._response_origin)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Retry-After", retry_after)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _respond_forbidden(self, message: str) -> None:
        logger.warning("Request from %s blocked by CORS: %s", self.client_address[0], message)
        body = json.dumps({"error": "forbidden", "message": message}).encode("utf-8")
        self.send_response(HTTPStatus.FORBIDDEN)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


class GpuMonitorServer:
    """Wraps the HTTP server and manages the shared handle and collector."""

    def __init__(
        self,
        host: str = SERVER.host,
        port: int = SERVER.port,
        *,
        monitor_handle: MonitorHandle | None = None,
        interval: float = CONFIG.refresh.interval,
        security_config: SecurityConfig = SECURITY,
        port_attempts: int = SERVER.port_attempts,
    ) -> None:
        self._handle = monitor_handle if monitor_handle is not None else MonitorHandle()
        self._collector = DataCollector(self._handle, interval=interval)
        self._serving = threading.Event()
        handler = partial(
            GpuMonitorRequestHandler,
            monitor_handle=self._handle,
            data_collector=self._collector,
            security_config=security_config,
        )

        # Port 0 lets the OS pick; otherwise walk forward past busy ports.
        attempts = 1 if port == 0 else max(1, port_attempts)
        for attempt in range(attempts):
            try:
                self._httpd = ThreadingHTTPServer((host, port + attempt), handler)
                break
            except OSError as exc:
                if exc.errno != errno.EADDRINUSE or attempt == attempts - 1:
                    raise
                logger.info("Port %d busy, trying %d", port + attempt, port + attempt + 1)

        if self._handle.is_available():
            self._collector.start()

    @property
    def collector(self) -> DataCollector:
        return self._collector

    def serve_forever(self) -> None:
        self._serving.set()
        try:
            self._httpd.serve_forever()
        finally:
            self.stop()

    def stop(self) -> None:
        try:
            # shutdown() blocks until serve_forever() returns, so skip it if serving never started.
            if self._serving.is_set():
                self._serving.clear()
                self._httpd.shutdown()
        finally:
            self._httpd.server_close()
            self._collector.stop()

    def server_address(self) -> str:
        host, port = self._httpd.server_address[:2]
        return f"http://{host}:{port}"


def create_app(host: str = SERVER.host, port: int = SERVER.port, **kwargs: Any) -> GpuMonitorServer:
    """Factory helper used by the CLI, scripts and tests."""

    return GpuMonitorServer(host=host, port=port, **kwargs)
