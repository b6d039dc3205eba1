"""Entry point for ``python -m gpu_monitor``."""

from gpu_monitor.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
