"""Command line entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from gpu_monitor import __version__
from gpu_monitor.core import CONFIG, SERVER, MonitorConfig
from gpu_monitor.core.config import LOG_LEVEL_ENV
from gpu_monitor.core.errors import (
    GpuMonitorError,
    NoDevicesFound,
    ProviderUnavailable,
    SerializationFailure,
)
from gpu_monitor.data.nvml import NvmlProvider
from gpu_monitor.data.provider import TelemetryProvider
from gpu_monitor.data.snapshot import build_snapshots
from gpu_monitor.output import (
    dump_json,
    format_gpu_report,
    format_process_table,
    processes_payload,
    snapshots_payload,
    watch_json,
)

logger = logging.getLogger("gpu_monitor")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpu-monitor",
        description="GPU Monitor - real-time NVIDIA GPU monitoring",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-o", "--once",
        action="store_true",
        help="Print GPU info once and exit (similar to nvidia-smi)",
    )
    parser.add_argument(
        "-w", "--watch",
        action="store_true",
        help="Continuous output mode (TUI, or a JSON stream with --json)",
    )
    parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    parser.add_argument(
        "-i", "--interval",
        type=int,
        default=CONFIG.refresh.interval_ms,
        help=f"Refresh interval in milliseconds (default: {CONFIG.refresh.interval_ms})",
    )
    parser.add_argument(
        "--visible-rows",
        type=int,
        default=CONFIG.scroll.visible_rows,
        help=f"Process table rows that fit on screen (default: {CONFIG.scroll.visible_rows})",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV, "WARNING"),
        help=f"Logging level (default: WARNING, or ${LOG_LEVEL_ENV})",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Write logs to this file")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("processes", help="Show GPU processes only")
    serve = subparsers.add_parser("serve", help="Serve GPU telemetry as a JSON HTTP API")
    serve.add_argument("--host", default=SERVER.host, help=f"Bind address (default: {SERVER.host})")
    serve.add_argument("--port", type=int, default=SERVER.port, help=f"Port (default: {SERVER.port})")
    return parser


def configure_logging(level: str, log_file: Path | None = None, console: bool = True) -> None:
    handlers: list[logging.Handler]
    if log_file is not None:
        handlers = [logging.FileHandler(log_file, encoding="utf-8")]
    elif console:
        handlers = [logging.StreamHandler(sys.stderr)]
    else:
        # The TUI owns the terminal; without a log file there is nowhere to write.
        handlers = [logging.NullHandler()]
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def _monitor_config(args: argparse.Namespace) -> MonitorConfig:
    return replace(
        CONFIG,
        refresh=replace(CONFIG.refresh, interval_ms=max(1, args.interval)),
        scroll=replace(CONFIG.scroll, visible_rows=max(1, args.visible_rows)),
    )


def _print(text: str) -> None:
    print(text, flush=True)


def _run_tui(provider: TelemetryProvider, config: MonitorConfig) -> None:
    from gpu_monitor.core.session import MonitorSession
    from gpu_monitor.tui import GpuMonitorApp

    app = GpuMonitorApp(MonitorSession(provider, config))
    app.run()
    if app.failure is not None:
        raise app.failure


def _serve(args: argparse.Namespace, config: MonitorConfig) -> int:
    from gpu_monitor.web import create_app

    server = create_app(host=args.host, port=args.port, interval=config.refresh.interval)
    print(f"GPU Monitor API listening on {server.server_address()}", file=sys.stderr)
    print("Press Ctrl+C to stop", file=sys.stderr)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("Stopping server...", file=sys.stderr)
        server.stop()
    return 0


def run(args: argparse.Namespace, provider: TelemetryProvider) -> None:
    config = _monitor_config(args)
    if args.command == "processes":
        snapshots = build_snapshots(provider)
        if args.json:
            _print(dump_json(processes_payload(snapshots), pretty=True))
        else:
            _print(format_process_table(snapshots))
    elif args.once or (args.json and not args.watch):
        snapshots = build_snapshots(provider)
        if args.json:
            _print(dump_json(snapshots_payload(snapshots), pretty=True))
        else:
            _print(format_gpu_report(snapshots))
    elif args.json:
        watch_json(provider, config.refresh.interval, _print)
    else:
        _run_tui(provider, config)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    tui_mode = args.command is None and not args.once and not args.json
    configure_logging(args.log_level, args.log_file, console=not tui_mode)

    if args.command == "serve":
        return _serve(args, _monitor_config(args))

    try:
        provider = NvmlProvider()
    except ProviderUnavailable as exc:
        logger.error("Failed to initialize GPU monitor: %s", exc)
        print("Error: Failed to initialize GPU monitor", file=sys.stderr)
        print("Make sure NVIDIA drivers are installed and you have an NVIDIA GPU.", file=sys.stderr)
        print(f"Details: {exc}", file=sys.stderr)
        return 1

    try:
        with provider:
            run(args, provider)
    except (ProviderUnavailable, NoDevicesFound, SerializationFailure) as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except GpuMonitorError as exc:
        logger.exception("Unexpected monitor failure", exc_info=exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
