"""
Network Hardware Adapter

Collects aggregate send/receive throughput across all network interfaces.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

import psutil

from .base_adapter import BaseHardwareAdapter, HardwareInfo, MetricValue
from ..exceptions import SourceUnavailable
from ..rate_sampler import CounterSource, RateSampler, bytes_to_megabits
from ..utils import get_sampling_interval

logger = logging.getLogger("sysprobe.adapters.network")

LOOPBACK_NAMES = ("lo", "lo0", "loopback")
ACTIVITY_UNITS = {"send_mbps": "Mbps", "receive_mbps": "Mbps"}


def is_loopback(iface_name: str) -> bool:
    name = iface_name.lower()
    return name in LOOPBACK_NAMES or name.startswith("loopback pseudo-interface")


@dataclass
class NetworkActivity:
    send_mbps: float
    receive_mbps: float


class NetworkCounterSource(CounterSource):
    """Bytes sent and received, summed over every non-loopback interface."""

    name = "network_io"
    streams = ("bytes_sent", "bytes_recv")

    def read_counters(self) -> Dict[str, int]:
        try:
            per_nic = psutil.net_io_counters(pernic=True)
        except (OSError, RuntimeError) as e:
            raise SourceUnavailable(f"Network I/O counters unavailable: {e}") from e

        totals = {"bytes_sent": 0, "bytes_recv": 0}
        for iface_name, counters in (per_nic or {}).items():
            if is_loopback(iface_name):
                continue
            totals["bytes_sent"] += counters.bytes_sent
            totals["bytes_recv"] += counters.bytes_recv
        return totals


class NetworkAdapter(BaseHardwareAdapter):
    """
    Network interface metrics adapter.

    Collects:
        - Send/receive throughput in binary Mbps, sampled over an interval

    Note: Does NOT collect IP addresses or connection details.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        sampler: Optional[RateSampler] = None,
    ):
        super().__init__(config)
        self._sampler = sampler or RateSampler()
        self._counter_source = NetworkCounterSource()

    def initialize(self) -> bool:
        """Initialize network monitoring."""
        try:
            psutil.net_if_addrs()
            self._initialized = True
            return True
        except Exception as e:
            self.record_error(str(e))
            return False

    def get_hardware_info(self) -> Optional[HardwareInfo]:
        """Get network hardware information."""
        if self._hardware_info:
            return self._hardware_info

        try:
            net_if_stats = psutil.net_if_stats()

            interface_info = []
            for iface_name, stats in net_if_stats.items():
                interface_info.append({
                    "name": iface_name,
                    "is_up": stats.isup,
                    "speed_mbps": stats.speed if stats.speed > 0 else "Unknown",
                    "mtu": stats.mtu,
                })

            self._hardware_info = HardwareInfo(
                vendor="System",
                model=f"Network ({len(interface_info)} interfaces)",
                identifier=f"NET_{len(interface_info)}ifaces",
                additional_info={
                    "interface_count": len(interface_info),
                    "interfaces": interface_info,
                }
            )
            return self._hardware_info

        except Exception as e:
            self.record_error(str(e))
            return None

    def get_activity(self, interval_seconds: Optional[float] = None) -> NetworkActivity:
        """
        Measure send/receive throughput summed over all adapters.

        Raises:
            InvalidInterval: If the interval is not positive
            SourceUnavailable: If I/O counters cannot be read
            CounterRegressed: If a counter was reset during the interval
        """
        if interval_seconds is None:
            interval_seconds = get_sampling_interval(self.config or None)

        rates = self._sampler.measure_rates(
            self._counter_source, interval_seconds, bytes_to_megabits, unit="Mbps"
        )
        return NetworkActivity(
            send_mbps=rates["bytes_sent"].rate_per_second,
            receive_mbps=rates["bytes_recv"].rate_per_second,
        )

    def collect_metrics(self) -> Dict[str, MetricValue]:
        """Collect send/receive throughput over the sampling interval."""
        metrics = {}

        try:
            metrics = self.record_metrics(self.get_activity(), ACTIVITY_UNITS, prefix="net_")
            self._last_metrics = metrics
            self.reset_error_count()

        except Exception as e:
            self.record_error(str(e))

        return metrics

    def cleanup(self) -> None:
        """Clean up resources."""
        self._initialized = False
