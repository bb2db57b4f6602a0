"""
Point Sampler

Single-shot reads of one metric kind. Every read returns a MetricValue:
available readings carry the probe record as their value, while missing
facilities come back as ``MetricStatus.UNAVAILABLE`` and platform gaps as
``MetricStatus.UNSUPPORTED``, each with a logged warning.

Interval measurements (CPU usage, disk and network activity) are
dispatched here too; their CounterRegressed and InvalidInterval failures
are not swallowed.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .adapters import (
    CPUAdapter,
    DiskAdapter,
    GPUAdapter,
    MemoryAdapter,
    MetricValue,
    MotherboardAdapter,
    NetworkAdapter,
)
from .exceptions import MetricNotSupported, SourceUnavailable
from .rate_sampler import RateSampler
from .utils import get_default_config, get_sampling_interval

logger = logging.getLogger("sysprobe.point_sampler")


class MetricKind(str, Enum):
    CPU_USAGE = "cpu_usage"
    CPU_TEMPERATURE = "cpu_temperature"
    MOTHERBOARD_TEMPERATURE = "motherboard_temperature"
    MEMORY_USAGE = "memory_usage"
    DISK_SPACE = "disk_space"
    DISK_TEMPERATURE = "disk_temperature"
    DISK_ACTIVITY = "disk_activity"
    NETWORK_ACTIVITY = "network_activity"
    GPU_USAGE = "gpu_usage"


METRIC_UNITS = {
    MetricKind.CPU_USAGE: "%",
    MetricKind.CPU_TEMPERATURE: "°C",
    MetricKind.MOTHERBOARD_TEMPERATURE: "°C",
    MetricKind.MEMORY_USAGE: "GB",
    MetricKind.DISK_SPACE: "GB",
    MetricKind.DISK_TEMPERATURE: "°C",
    MetricKind.DISK_ACTIVITY: "MB/s",
    MetricKind.NETWORK_ACTIVITY: "Mbps",
    MetricKind.GPU_USAGE: "%",
}


class PointSampler:
    """
    Dispatches metric reads to the hardware adapters.

    Adapters are created once per sampler; pass your own to substitute
    test doubles.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        sampler: Optional[RateSampler] = None,
        cpu: Optional[CPUAdapter] = None,
        memory: Optional[MemoryAdapter] = None,
        disk: Optional[DiskAdapter] = None,
        network: Optional[NetworkAdapter] = None,
        gpu: Optional[GPUAdapter] = None,
        board: Optional[MotherboardAdapter] = None,
    ):
        self.config = config or get_default_config()
        self.interval_seconds = get_sampling_interval(self.config)
        sampler = sampler or RateSampler()

        self.cpu = cpu or CPUAdapter(self.config)
        self.memory = memory or MemoryAdapter(self.config)
        self.disk = disk or DiskAdapter(self.config, sampler=sampler)
        self.network = network or NetworkAdapter(self.config, sampler=sampler)
        self.gpu = gpu or GPUAdapter(self.config)
        self.board = board or MotherboardAdapter(self.config)

        self._readers: Dict[MetricKind, Callable[[], Any]] = {
            MetricKind.CPU_USAGE: lambda: self.cpu.get_usage(self.interval_seconds),
            MetricKind.CPU_TEMPERATURE: self.cpu.get_temperature,
            MetricKind.MOTHERBOARD_TEMPERATURE: self.board.get_temperature,
            MetricKind.MEMORY_USAGE: self.memory.get_usage,
            MetricKind.DISK_SPACE: self.disk.get_space,
            MetricKind.DISK_TEMPERATURE: self.disk.get_temperature,
            MetricKind.DISK_ACTIVITY: lambda: self.disk.get_activity(self.interval_seconds),
            MetricKind.NETWORK_ACTIVITY: lambda: self.network.get_activity(self.interval_seconds),
            MetricKind.GPU_USAGE: self.gpu.get_stats,
        }

    def read(self, kind: MetricKind) -> MetricValue:
        """
        Read one metric.

        Returns:
            MetricValue with the probe record as value, or an absent value
            tagged UNAVAILABLE/UNSUPPORTED

        Raises:
            CounterRegressed: If a rate measurement saw a counter reset
            InvalidInterval: If the configured interval is not positive
        """
        kind = MetricKind(kind)
        unit = METRIC_UNITS[kind]
        reader = self._readers[kind]

        try:
            value = reader()
        except MetricNotSupported as e:
            logger.warning(f"{kind.value}: not supported ({e})")
            return MetricValue.unsupported(kind.value, unit, str(e))
        except SourceUnavailable as e:
            logger.warning(f"{kind.value}: unavailable ({e})")
            return MetricValue.unavailable(kind.value, unit, str(e))

        return MetricValue(name=kind.value, value=value, unit=unit, source="sysprobe")

    def close(self) -> None:
        for adapter in (self.cpu, self.memory, self.disk, self.network, self.gpu, self.board):
            adapter.cleanup()
