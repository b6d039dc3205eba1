"""pytest configuration for gpu_monitor tests.

No test talks to a real driver: providers are faked and the NVML binding
is replaced per test where the NVML provider itself is under test.
"""

import pytest

from gpu_monitor.web.server import GpuMonitorRequestHandler


@pytest.fixture(autouse=True)
def reset_rate_limit_log():
    """Clear the per-client request log shared by every HTTP handler."""
    GpuMonitorRequestHandler._request_log.clear()
    yield
    GpuMonitorRequestHandler._request_log.clear()
