"""Smoke test for the GPU monitor HTTP API against the real driver."""

from __future__ import annotations

import json
import sys
import threading
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gpu_monitor.web.server import create_app


def fetch_json(url: str) -> Any:
    try:
        with urllib.request.urlopen(url) as response:  # nosec - local smoke test
            payload = response.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        payload = exc.read().decode("utf-8")
    return json.loads(payload)


def run_smoke() -> None:
    server = create_app(port=0)
    address = server.server_address()
    print(f"Starting server on {address}")

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        time.sleep(1.5)  # let the collector take a sample
        available = fetch_json(f"{address}/api/available")
        assert "available" in available, "Missing availability flag"
        if not available["available"]:
            error = fetch_json(f"{address}/api/gpus")
            assert error.get("error") == "provider_unavailable", error
            print("SMOKE_OK (no driver)", error["message"])
            return

        gpus = fetch_json(f"{address}/api/gpus")
        current = fetch_json(f"{address}/api/current")
        history = fetch_json(f"{address}/api/history")
        assert isinstance(gpus, list) and gpus, "No GPU snapshots"
        assert current["gpus"], "Collector has no snapshot"
        assert history["gpus"], "History has no series"
        print("SMOKE_OK", {
            "gpus": [gpu["device"]["name"] for gpu in gpus],
            "utilization": [gpu["metrics"]["gpu_utilization"] for gpu in gpus],
            "history_points": len(history["gpus"][0]["utilization"]),
        })
    finally:
        server.stop()
        thread.join()

if __name__ == "__main__":
    run_smoke()
