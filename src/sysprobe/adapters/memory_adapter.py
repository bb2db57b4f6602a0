"""
Memory (RAM) Hardware Adapter

Collects physical memory totals and utilization.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

import psutil

from .base_adapter import BaseHardwareAdapter, HardwareInfo, MetricValue
from ..exceptions import SourceUnavailable
from ..utils import bytes_to_gb

MEMORY_UNITS = {"total_gb": "GB", "free_gb": "GB", "used_percent": "%"}


@dataclass
class MemoryUsage:
    total_gb: float
    free_gb: float
    used_percent: float


class MemoryAdapter(BaseHardwareAdapter):
    """
    System memory metrics adapter.

    Collects:
        - Total and available RAM
        - RAM utilization percentage
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self._total_ram_gb = 0.0

    def initialize(self) -> bool:
        """Initialize memory monitoring."""
        try:
            mem = psutil.virtual_memory()
            self._total_ram_gb = bytes_to_gb(mem.total)
            self._initialized = True
            return True
        except Exception as e:
            self.record_error(str(e))
            return False

    def get_hardware_info(self) -> Optional[HardwareInfo]:
        """Get memory hardware information."""
        if self._hardware_info:
            return self._hardware_info

        try:
            swap = psutil.swap_memory()

            self._hardware_info = HardwareInfo(
                vendor="System",
                model=f"RAM {self._total_ram_gb} GB",
                identifier=f"RAM_{self._total_ram_gb}GB",
                additional_info={
                    "total_ram_gb": self._total_ram_gb,
                    "total_swap_gb": bytes_to_gb(swap.total),
                }
            )
            return self._hardware_info

        except Exception as e:
            self.record_error(str(e))
            return None

    def get_usage(self) -> MemoryUsage:
        """
        Read total and free physical memory.

        "Free" is the memory available to new processes without swapping.

        Raises:
            SourceUnavailable: If memory statistics cannot be read
        """
        try:
            mem = psutil.virtual_memory()
        except (OSError, psutil.Error) as e:
            raise SourceUnavailable(f"Memory statistics unavailable: {e}") from e

        return MemoryUsage(
            total_gb=bytes_to_gb(mem.total),
            free_gb=bytes_to_gb(mem.available),
            used_percent=round(mem.percent, 2),
        )

    def collect_metrics(self) -> Dict[str, MetricValue]:
        """Collect current memory metrics."""
        metrics = {}

        try:
            metrics = self.record_metrics(self.get_usage(), MEMORY_UNITS, prefix="ram_")
            self._last_metrics = metrics
            self.reset_error_count()

        except Exception as e:
            self.record_error(str(e))

        return metrics

    def cleanup(self) -> None:
        """Clean up resources."""
        self._initialized = False
