"""
Tests for Network Adapter

Covers:
    - Initialization and cleanup
    - Aggregate counters excluding loopback
    - Throughput through the rate sampler
    - Edge cases (no interfaces, counter reset, no traffic)
"""

import pytest
from collections import namedtuple
from unittest.mock import patch, Mock

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sysprobe.adapters.network_adapter import (
    NetworkActivity,
    NetworkAdapter,
    NetworkCounterSource,
    is_loopback,
)
from sysprobe.exceptions import CounterRegressed, SourceUnavailable

NicCounters = namedtuple("NicCounters", ["bytes_sent", "bytes_recv"])


def nics(**counters):
    return {name: NicCounters(*values) for name, values in counters.items()}


class TestNetworkAdapterBasic:
    """Basic network adapter tests."""

    def test_initialization(self):
        """Test network adapter initializes correctly."""
        adapter = NetworkAdapter()
        assert adapter.initialize() is True
        assert adapter.is_initialized
        adapter.cleanup()

    def test_hardware_info(self):
        """Test hardware info retrieval."""
        adapter = NetworkAdapter()
        adapter.initialize()
        assert adapter.get_hardware_info() is not None
        adapter.cleanup()

    def test_cleanup_idempotent(self):
        """Test cleanup can be called multiple times."""
        adapter = NetworkAdapter()
        adapter.initialize()
        adapter.cleanup()
        adapter.cleanup()

    def test_collect_metrics(self, rate_sampler):
        """Test collected metrics mirror the activity record."""
        adapter = NetworkAdapter(sampler=rate_sampler)
        with patch("sysprobe.adapters.network_adapter.psutil.net_io_counters",
                   return_value=nics(eth0=(100, 200), lo=(5000, 5000))):
            metrics = adapter.collect_metrics()
        assert sorted(metrics) == ["net_receive_mbps", "net_send_mbps"]
        assert metrics["net_send_mbps"].value == 0.0
        assert metrics["net_send_mbps"].unit == "Mbps"


class TestNetworkCounterSource:
    """Tests for counter aggregation."""

    def test_sums_all_adapters(self):
        """Test counters are summed across adapters."""
        with patch("sysprobe.adapters.network_adapter.psutil.net_io_counters",
                   return_value=nics(eth0=(100, 1000), wlan0=(50, 500))):
            counters = NetworkCounterSource().read_counters()
        assert counters == {"bytes_sent": 150, "bytes_recv": 1500}

    def test_loopback_excluded(self):
        """Test loopback traffic is not counted."""
        with patch("sysprobe.adapters.network_adapter.psutil.net_io_counters",
                   return_value={
                       "lo": NicCounters(10, 10),
                       "Loopback Pseudo-Interface 1": NicCounters(20, 20),
                       "Ethernet": NicCounters(1, 2),
                   }):
            counters = NetworkCounterSource().read_counters()
        assert counters == {"bytes_sent": 1, "bytes_recv": 2}

    def test_no_interfaces(self):
        """Test zero adapters gives zero counters."""
        with patch("sysprobe.adapters.network_adapter.psutil.net_io_counters", return_value={}):
            counters = NetworkCounterSource().read_counters()
        assert counters == {"bytes_sent": 0, "bytes_recv": 0}

    def test_counter_api_failure(self):
        """Test counter API failures become SourceUnavailable."""
        with patch("sysprobe.adapters.network_adapter.psutil.net_io_counters",
                   side_effect=OSError("no /proc/net/dev")):
            with pytest.raises(SourceUnavailable):
                NetworkCounterSource().read_counters()

    @pytest.mark.parametrize("name,expected", [
        ("lo", True),
        ("lo0", True),
        ("Loopback Pseudo-Interface 1", True),
        ("eth0", False),
        ("Wi-Fi", False),
    ])
    def test_is_loopback(self, name, expected):
        """Test loopback interface detection."""
        assert is_loopback(name) is expected


class TestNetworkActivity:
    """Test network rate calculations."""

    def test_send_and_receive_rates(self, rate_sampler):
        """Test 131,072 bytes/s is reported as 1.00 Mbps."""
        adapter = NetworkAdapter(sampler=rate_sampler)
        with patch("sysprobe.adapters.network_adapter.psutil.net_io_counters",
                   side_effect=[nics(eth0=(0, 0)), nics(eth0=(131072, 262144))]):
            activity = adapter.get_activity(1.0)
        assert activity == NetworkActivity(send_mbps=1.0, receive_mbps=2.0)

    def test_no_traffic(self, rate_sampler):
        """Test identical samples give 0.00 Mbps."""
        adapter = NetworkAdapter(sampler=rate_sampler)
        with patch("sysprobe.adapters.network_adapter.psutil.net_io_counters",
                   return_value=nics(eth0=(123456, 654321))):
            activity = adapter.get_activity(1.0)
        assert activity.send_mbps == 0.0
        assert activity.receive_mbps == 0.0

    def test_adapter_reset(self, rate_sampler):
        """Test an adapter reset mid-interval raises CounterRegressed."""
        adapter = NetworkAdapter(sampler=rate_sampler)
        with patch("sysprobe.adapters.network_adapter.psutil.net_io_counters",
                   side_effect=[nics(eth0=(10_000, 10_000)), nics(eth0=(0, 20_000))]):
            with pytest.raises(CounterRegressed):
                adapter.get_activity(1.0)

    def test_high_throughput_values(self, rate_sampler):
        """Test very large counters do not overflow."""
        adapter = NetworkAdapter(sampler=rate_sampler)
        start = 10 ** 15
        with patch("sysprobe.adapters.network_adapter.psutil.net_io_counters",
                   side_effect=[nics(eth0=(start, start)), nics(eth0=(start + 1310720, start))]):
            activity = adapter.get_activity(1.0)
        assert activity.send_mbps == 10.0
        assert activity.receive_mbps == 0.0
