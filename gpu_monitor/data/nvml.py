"""GPU telemetry provider backed by NVML."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, TypeVar

from gpu_monitor.core.errors import FieldReadError, InvalidDeviceIndex, ProviderUnavailable
from gpu_monitor.models import DeviceMetrics, DeviceStaticInfo, MemoryInfo, RawProcess

from .provider import ProcessLists, TelemetryProvider

try:
    import pynvml  # type: ignore[import]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pynvml = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _text(value: Any) -> str:
    # Older bindings return bytes, current nvidia-ml-py returns str.
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def format_cuda_version(version: int) -> str:
    """Render NVML's integer driver CUDA version (12020) as ``"12.2"``."""

    major = version // 1000
    minor = (version % 1000) // 10
    return f"{major}.{minor}"


def _read(label: str, fetch: Callable[[], T], default: T) -> T:
    try:
        return fetch()
    except pynvml.NVMLError as exc:
        logger.debug("NVML field '%s' unavailable: %s", label, exc)
        return default


def _raw_processes(entries: Iterable[Any]) -> list[RawProcess]:
    processes = []
    for entry in entries:
        used = getattr(entry, "usedGpuMemory", None)
        processes.append(RawProcess(pid=int(entry.pid), used_memory=int(used) if used is not None else None))
    return processes


class NvmlProvider(TelemetryProvider):
    """Reads device telemetry through pynvml.

    NVML is initialized once in the constructor; failure to do so is reported
    as ``ProviderUnavailable`` and the instance is never created.
    """

    def __init__(self) -> None:
        if pynvml is None:
            raise ProviderUnavailable("pynvml is not installed (pip install nvidia-ml-py)")
        try:
            pynvml.nvmlInit()
        except pynvml.NVMLError as exc:
            raise ProviderUnavailable(f"Failed to initialize NVML: {exc}") from exc
        self._initialized = True

    def shutdown(self) -> None:
        if not self._initialized:
            return
        self._initialized = False
        try:
            pynvml.nvmlShutdown()
        except pynvml.NVMLError as exc:
            logger.warning("NVML shutdown failed: %s", exc)

    def _handle(self, index: int) -> Any:
        if index < 0:
            raise InvalidDeviceIndex(index)
        try:
            return pynvml.nvmlDeviceGetHandleByIndex(index)
        except pynvml.NVMLError as exc:
            if getattr(exc, "value", None) == pynvml.NVML_ERROR_INVALID_ARGUMENT:
                raise InvalidDeviceIndex(index) from exc
            raise ProviderUnavailable(f"Failed to open GPU {index}: {exc}") from exc

    def device_count(self) -> int:
        try:
            return int(pynvml.nvmlDeviceGetCount())
        except pynvml.NVMLError as exc:
            raise ProviderUnavailable(f"Failed to enumerate GPUs: {exc}") from exc

    def device_static_info(self, index: int) -> DeviceStaticInfo:
        handle = self._handle(index)
        try:
            name = _text(pynvml.nvmlDeviceGetName(handle))
            uuid = _text(pynvml.nvmlDeviceGetUUID(handle))
            pci_bus_id = _text(pynvml.nvmlDeviceGetPciInfo(handle).busId)
            driver_version = _text(pynvml.nvmlSystemGetDriverVersion())
        except pynvml.NVMLError as exc:
            raise ProviderUnavailable(f"Failed to read identity of GPU {index}: {exc}") from exc

        cuda_version = _read(
            "cuda_version",
            lambda: format_cuda_version(int(pynvml.nvmlSystemGetCudaDriverVersion())),
            None,
        )
        # NVML reports limits in milliwatts.
        power_limit = _read(
            "power_limit",
            lambda: int(pynvml.nvmlDeviceGetPowerManagementLimit(handle)) // 1000,
            0,
        )
        power_limit_max = _read(
            "power_limit_max",
            lambda: int(pynvml.nvmlDeviceGetPowerManagementLimitConstraints(handle)[1]) // 1000,
            power_limit,
        )
        return DeviceStaticInfo(
            index=index,
            name=name,
            uuid=uuid,
            pci_bus_id=pci_bus_id,
            driver_version=driver_version,
            cuda_version=cuda_version,
            power_limit=power_limit,
            power_limit_max=power_limit_max,
        )

    def device_metrics(self, index: int) -> DeviceMetrics:
        handle = self._handle(index)
        rates = _read("utilization", lambda: pynvml.nvmlDeviceGetUtilizationRates(handle), None)
        return DeviceMetrics(
            gpu_utilization=int(rates.gpu) if rates is not None else 0,
            memory_utilization=int(rates.memory) if rates is not None else 0,
            encoder_utilization=_read(
                "encoder_utilization", lambda: int(pynvml.nvmlDeviceGetEncoderUtilization(handle)[0]), 0
            ),
            decoder_utilization=_read(
                "decoder_utilization", lambda: int(pynvml.nvmlDeviceGetDecoderUtilization(handle)[0]), 0
            ),
            temperature=_read(
                "temperature",
                lambda: int(pynvml.nvmlDeviceGetTemperature(handle, pynvml.NVML_TEMPERATURE_GPU)),
                0,
            ),
            power_usage=_read("power_usage", lambda: int(pynvml.nvmlDeviceGetPowerUsage(handle)), 0),
            fan_speed=_read("fan_speed", lambda: int(pynvml.nvmlDeviceGetFanSpeed_v2(handle, 0)), None),
            clock_graphics=_read(
                "clock_graphics", lambda: int(pynvml.nvmlDeviceGetClockInfo(handle, pynvml.NVML_CLOCK_GRAPHICS)), 0
            ),
            clock_memory=_read(
                "clock_memory", lambda: int(pynvml.nvmlDeviceGetClockInfo(handle, pynvml.NVML_CLOCK_MEM)), 0
            ),
            clock_sm=_read("clock_sm", lambda: int(pynvml.nvmlDeviceGetClockInfo(handle, pynvml.NVML_CLOCK_SM)), 0),
        )

    def device_memory(self, index: int) -> MemoryInfo:
        handle = self._handle(index)
        try:
            memory = pynvml.nvmlDeviceGetMemoryInfo(handle)
        except pynvml.NVMLError as exc:
            raise FieldReadError(f"Failed to read memory of GPU {index}: {exc}") from exc
        return MemoryInfo(total=int(memory.total), used=int(memory.used), free=int(memory.free))

    def device_processes(self, index: int) -> ProcessLists:
        handle = self._handle(index)
        compute = _read(
            "compute_processes",
            lambda: _raw_processes(pynvml.nvmlDeviceGetComputeRunningProcesses(handle)),
            [],
        )
        graphics = _read(
            "graphics_processes",
            lambda: _raw_processes(pynvml.nvmlDeviceGetGraphicsRunningProcesses(handle)),
            [],
        )
        return compute, graphics
