"""
CPU Hardware Adapter

Collects CPU utilization and temperature across Windows, Linux, and macOS.
"""

import sys
import platform
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass

import psutil
import cpuinfo

if sys.platform == "win32":
    try:
        import wmi
        import pythoncom
        HAS_WMI = True
    except ImportError:
        HAS_WMI = False
else:
    HAS_WMI = False

from .base_adapter import BaseHardwareAdapter, HardwareInfo, MetricValue
from ..exceptions import MetricNotSupported, SourceUnavailable
from ..rate_sampler import validate_interval
from ..utils import get_sampling_interval

logger = logging.getLogger("sysprobe.adapters.cpu")

# psutil sensor names that report package/core temperatures
CPU_SENSOR_NAMES = ["coretemp", "k10temp", "zenpower", "cpu_thermal", "cpu-thermal", "acpitz"]


def cpu_sensor_average(temps: Dict[str, List[Any]]) -> Optional[float]:
    """Average of the first known CPU sensor group, or None."""
    for name in CPU_SENSOR_NAMES:
        readings = temps.get(name) or []
        if readings:
            return sum(r.current for r in readings) / len(readings)
    return None


@dataclass
class CpuUsage:
    processor_label: str
    utilization_percent: float


@dataclass
class CpuTemperature:
    processor_label: str
    celsius: float


class CPUAdapter(BaseHardwareAdapter):
    """
    Cross-platform CPU metrics adapter.

    Collects:
        - Overall utilization percentage, measured over the sampling interval
        - CPU temperature (psutil sensors on Linux, ACPI thermal zone via WMI on Windows)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self._wmi_conn = None
        self._cpu_count = psutil.cpu_count(logical=True)
        self._cpu_count_physical = psutil.cpu_count(logical=False)
        self._processor_label: Optional[str] = None

    def initialize(self) -> bool:
        """Open the WMI thermal namespace on Windows."""
        try:
            if HAS_WMI:
                try:
                    pythoncom.CoInitialize()
                    self._wmi_conn = wmi.WMI(namespace="root\\wmi")
                except Exception as e:
                    logger.debug(f"WMI thermal namespace unavailable: {e}")
                    self._wmi_conn = None

            self._initialized = True
            return True
        except Exception as e:
            self.record_error(str(e))
            return False

    @property
    def processor_label(self) -> str:
        """Brand string of the processor, e.g. 'Intel(R) Core(TM) i7-9700K'."""
        if self._processor_label is None:
            label = ""
            try:
                label = cpuinfo.get_cpu_info().get("brand_raw", "")
            except Exception as e:
                logger.debug(f"py-cpuinfo lookup failed: {e}")
            self._processor_label = label or platform.processor() or "CPU"
        return self._processor_label

    def get_hardware_info(self) -> Optional[HardwareInfo]:
        """Get CPU identification information."""
        if self._hardware_info:
            return self._hardware_info

        try:
            cpu_data = cpuinfo.get_cpu_info()
            flags = [str(flag).lower() for flag in cpu_data.get("flags", [])]

            capabilities = []
            for flag, name in [("avx", "AVX"), ("avx2", "AVX2"), ("avx512f", "AVX-512"), ("sse4_2", "SSE4")]:
                if flag in flags:
                    capabilities.append(name)

            self._hardware_info = HardwareInfo(
                vendor=cpu_data.get("vendor_id_raw", "Unknown"),
                model=cpu_data.get("brand_raw", "Unknown CPU"),
                identifier=f"CPU_{self._cpu_count_physical}C_{self._cpu_count}T",
                capabilities=capabilities,
                additional_info={
                    "physical_cores": self._cpu_count_physical,
                    "logical_cores": self._cpu_count,
                    "architecture": cpu_data.get("arch", platform.machine()),
                }
            )
            return self._hardware_info

        except Exception as e:
            self.record_error(str(e))
            return None

    def get_usage(self, interval_seconds: Optional[float] = None) -> CpuUsage:
        """
        Measure overall processor utilization over ``interval_seconds``.

        Blocks for the whole interval; defaults to the configured sampling
        interval.

        Raises:
            InvalidInterval: If the interval is not positive
            SourceUnavailable: If the processor counters cannot be read
        """
        if interval_seconds is None:
            interval_seconds = get_sampling_interval(self.config or None)
        interval = validate_interval(interval_seconds)

        try:
            percent = psutil.cpu_percent(interval=interval)
        except (OSError, psutil.Error) as e:
            raise SourceUnavailable(f"CPU utilization counter unavailable: {e}") from e

        return CpuUsage(
            processor_label=self.processor_label,
            utilization_percent=round(percent, 2),
        )

    def get_temperature(self) -> CpuTemperature:
        """
        Read the processor temperature in degrees Celsius.

        Raises:
            MetricNotSupported: If the host exposes no temperature sensors at all
            SourceUnavailable: If sensors exist but none is a readable CPU sensor
        """
        has_sensors = hasattr(psutil, "sensors_temperatures")
        if not has_sensors and not HAS_WMI:
            raise MetricNotSupported(f"CPU temperature is not supported on {sys.platform}")

        temps: Dict[str, List[Any]] = {}
        if has_sensors:
            try:
                temps = self._read_sensor_map()
            except SourceUnavailable:
                if not HAS_WMI:
                    raise
        if not temps and not HAS_WMI:
            # VMs and containers commonly expose an empty sensor map
            raise MetricNotSupported("No temperature sensors exposed on this host")

        celsius = cpu_sensor_average(temps)
        if celsius is None and HAS_WMI:
            celsius = self._read_wmi_temperature()

        if celsius is None:
            raise SourceUnavailable("No CPU temperature sensor exposed")

        return CpuTemperature(processor_label=self.processor_label, celsius=round(celsius, 2))

    def collect_metrics(self) -> Dict[str, MetricValue]:
        """Collect utilization over the sampling interval and temperature."""
        metrics = {}

        try:
            usage = self.get_usage()
            metrics["utilization"] = MetricValue(
                name="utilization",
                value=usage.utilization_percent,
                unit="%",
                source="psutil"
            )

            try:
                temperature = self.get_temperature()
                metrics["temperature"] = MetricValue(
                    name="temperature",
                    value=temperature.celsius,
                    unit="°C",
                    source="platform_specific"
                )
            except SourceUnavailable as e:
                logger.debug(f"CPU temperature skipped: {e}")

            self._last_metrics = metrics
            self.reset_error_count()

        except Exception as e:
            self.record_error(str(e))

        return metrics

    def _read_sensor_map(self) -> Dict[str, List[Any]]:
        try:
            return psutil.sensors_temperatures() or {}
        except (OSError, psutil.Error) as e:
            raise SourceUnavailable(f"Temperature sensors could not be read: {e}") from e

    def _read_wmi_temperature(self) -> Optional[float]:
        try:
            conn = self._wmi_conn or wmi.WMI(namespace="root\\wmi")
            zones = conn.MSAcpi_ThermalZoneTemperature()
        except Exception as e:
            logger.debug(f"MSAcpi_ThermalZoneTemperature query failed: {e}")
            return None
        if not zones:
            return None
        # Tenths of Kelvin
        return zones[0].CurrentTemperature / 10.0 - 273.15

    def cleanup(self) -> None:
        """Clean up resources."""
        if HAS_WMI and self._initialized:
            try:
                pythoncom.CoUninitialize()
            except Exception:
                pass
        self._wmi_conn = None
        self._initialized = False
