"""
Motherboard Hardware Adapter

Identifies the baseboard via WMI on Windows. Board temperature sensing is
not implemented on any platform.
"""

import sys
import logging
from typing import Dict, Any, Optional

if sys.platform == "win32":
    try:
        import wmi
        HAS_WMI = True
    except ImportError:
        HAS_WMI = False
else:
    HAS_WMI = False

from .base_adapter import BaseHardwareAdapter, HardwareInfo, MetricValue
from ..exceptions import MetricNotSupported

logger = logging.getLogger("sysprobe.adapters.board")


class MotherboardAdapter(BaseHardwareAdapter):
    """Baseboard identification; exposes no live metrics."""

    def initialize(self) -> bool:
        self._initialized = True
        return True

    def get_hardware_info(self) -> Optional[HardwareInfo]:
        """Manufacturer and product from Win32_BaseBoard (Windows only)."""
        if self._hardware_info:
            return self._hardware_info
        if not HAS_WMI:
            return None

        try:
            for board in wmi.WMI().Win32_BaseBoard():
                self._hardware_info = HardwareInfo(
                    vendor=board.Manufacturer or "Unknown",
                    model=board.Product or "Unknown board",
                    identifier=f"MB_{board.Product or 'unknown'}".replace(" ", "_"),
                    firmware_version=board.Version,
                )
                break
        except Exception as e:
            self.record_error(str(e))
            logger.debug(f"Win32_BaseBoard query failed: {e}")
        return self._hardware_info

    def get_temperature(self) -> None:
        """Motherboard temperature is not implemented on any platform."""
        raise MetricNotSupported("Motherboard temperature is not supported")

    def collect_metrics(self) -> Dict[str, MetricValue]:
        return {}

    def cleanup(self) -> None:
        self._initialized = False
