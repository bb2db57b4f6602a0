"""
Disk/Storage Hardware Adapter

Collects volume space usage and aggregate read/write throughput for all
mounted storage devices.
"""

import sys
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional, List

import psutil

from .base_adapter import BaseHardwareAdapter, HardwareInfo, MetricValue
from ..exceptions import MetricNotSupported, SourceUnavailable
from ..rate_sampler import CounterSource, RateSampler, bytes_to_megabytes
from ..utils import bytes_to_gb, get_sampling_interval

logger = logging.getLogger("sysprobe.adapters.disk")

SPACE_UNITS = {"total_gb": "GB", "free_gb": "GB", "used_percent": "%"}
ACTIVITY_UNITS = {"read_mb_per_second": "MB/s", "write_mb_per_second": "MB/s"}


@dataclass
class DiskSpace:
    drive_name: str
    free_gb: float
    total_gb: float
    used_percent: float


@dataclass
class DiskActivity:
    read_mb_per_second: float
    write_mb_per_second: float


class DiskCounterSource(CounterSource):
    """Total bytes read and written across all physical disks."""

    name = "disk_io"
    streams = ("read_bytes", "write_bytes")

    def read_counters(self) -> Dict[str, int]:
        try:
            counters = psutil.disk_io_counters(perdisk=False)
        except (OSError, RuntimeError) as e:
            raise SourceUnavailable(f"Disk I/O counters unavailable: {e}") from e

        # psutil returns None when the host has no disks
        if counters is None:
            return {"read_bytes": 0, "write_bytes": 0}
        return {"read_bytes": counters.read_bytes, "write_bytes": counters.write_bytes}


def drive_name(partition: Any) -> str:
    """Display name for a partition: 'C:' on Windows, the mountpoint elsewhere."""
    if sys.platform == "win32":
        return partition.device.rstrip("\\") or partition.mountpoint
    return partition.mountpoint


class DiskAdapter(BaseHardwareAdapter):
    """
    Disk/Storage metrics adapter.

    Collects:
        - Free and total space per mounted volume
        - Aggregate read/write throughput, sampled over an interval
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        sampler: Optional[RateSampler] = None,
    ):
        super().__init__(config)
        self._sampler = sampler or RateSampler()
        self._counter_source = DiskCounterSource()

    def initialize(self) -> bool:
        """Initialize disk monitoring."""
        try:
            psutil.disk_partitions(all=False)
            self._initialized = True
            return True
        except Exception as e:
            self.record_error(str(e))
            return False

    def get_hardware_info(self) -> Optional[HardwareInfo]:
        """Get disk hardware information."""
        if self._hardware_info:
            return self._hardware_info

        try:
            volumes = self.get_space()
            total_size_gb = round(sum(v.total_gb for v in volumes), 2)

            self._hardware_info = HardwareInfo(
                vendor="System",
                model=f"Storage {round(total_size_gb)} GB",
                identifier=f"DISK_{len(volumes)}drives_{round(total_size_gb)}GB",
                additional_info={
                    "total_storage_gb": total_size_gb,
                    "partition_count": len(volumes),
                    "partitions": [v.drive_name for v in volumes],
                }
            )
            return self._hardware_info

        except Exception as e:
            self.record_error(str(e))
            return None

    def get_space(self) -> List[DiskSpace]:
        """
        List free and total space for every mounted volume.

        Volumes that cannot be queried (empty card readers, permission
        denied) are skipped.

        Raises:
            SourceUnavailable: If the partition table cannot be read
        """
        try:
            partitions = psutil.disk_partitions(all=False)
        except OSError as e:
            raise SourceUnavailable(f"Disk partitions unavailable: {e}") from e

        volumes = []
        for partition in partitions:
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except (PermissionError, OSError) as e:
                logger.debug(f"Skipping {partition.mountpoint}: {e}")
                continue

            volumes.append(DiskSpace(
                drive_name=drive_name(partition),
                free_gb=bytes_to_gb(usage.free),
                total_gb=bytes_to_gb(usage.total),
                used_percent=round(usage.percent, 2),
            ))
        return volumes

    def get_activity(self, interval_seconds: Optional[float] = None) -> DiskActivity:
        """
        Measure aggregate disk throughput in binary MB/s.

        Read and write rates come from the same pair of samples.

        Raises:
            InvalidInterval: If the interval is not positive
            SourceUnavailable: If I/O counters cannot be read
            CounterRegressed: If a counter was reset during the interval
        """
        if interval_seconds is None:
            interval_seconds = get_sampling_interval(self.config or None)

        rates = self._sampler.measure_rates(
            self._counter_source, interval_seconds, bytes_to_megabytes, unit="MB/s"
        )
        return DiskActivity(
            read_mb_per_second=rates["read_bytes"].rate_per_second,
            write_mb_per_second=rates["write_bytes"].rate_per_second,
        )

    def get_temperature(self) -> None:
        """Disk temperature is not implemented on any platform."""
        raise MetricNotSupported("Disk temperature is not supported")

    def collect_metrics(self) -> Dict[str, MetricValue]:
        """Collect space per volume and throughput over the sampling interval."""
        metrics = {}

        try:
            for volume in self.get_space():
                safe_name = volume.drive_name.strip("/\\:").replace("/", "_").replace(":", "") or "root"
                metrics.update(self.record_metrics(volume, SPACE_UNITS, prefix=f"disk_{safe_name}_"))

            metrics.update(self.record_metrics(self.get_activity(), ACTIVITY_UNITS, prefix="disk_"))
            self._last_metrics = metrics
            self.reset_error_count()

        except Exception as e:
            self.record_error(str(e))

        return metrics

    def cleanup(self) -> None:
        """Clean up resources."""
        self._initialized = False
