"""
Tests for Point Sampler

Covers:
    - Available, unavailable and unsupported results
    - Warnings for absent values
    - Rate measurement failures propagate
"""

import logging
import pytest
from unittest.mock import patch, Mock

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sysprobe.adapters import (
    CPUAdapter,
    CpuUsage,
    DiskAdapter,
    GPUAdapter,
    MemoryAdapter,
    MetricStatus,
    MotherboardAdapter,
    NetworkActivity,
    NetworkAdapter,
)
from sysprobe.exceptions import CounterRegressed, InvalidInterval, MetricNotSupported, SourceUnavailable
from sysprobe.point_sampler import MetricKind, PointSampler


def build_sampler(config=None, **overrides):
    adapters = {
        "cpu": Mock(spec=CPUAdapter),
        "memory": Mock(spec=MemoryAdapter),
        "disk": Mock(spec=DiskAdapter),
        "network": Mock(spec=NetworkAdapter),
        "gpu": Mock(spec=GPUAdapter),
        "board": MotherboardAdapter(),
    }
    adapters.update(overrides)
    return PointSampler(config, **adapters), adapters


class TestPointSampler:
    """Tests for PointSampler.read."""

    def test_available_value(self):
        """Test a successful read wraps the record."""
        sampler, adapters = build_sampler()
        adapters["cpu"].get_usage.return_value = CpuUsage("Test CPU", 12.5)

        metric = sampler.read(MetricKind.CPU_USAGE)
        assert metric.is_available
        assert metric.value == CpuUsage("Test CPU", 12.5)
        assert metric.name == "cpu_usage"
        assert metric.unit == "%"

    def test_kind_from_string(self):
        """Test kinds may be passed by value."""
        sampler, adapters = build_sampler()
        adapters["cpu"].get_usage.return_value = CpuUsage("Test CPU", 1.0)
        assert sampler.read("cpu_usage").is_available

    def test_unavailable_logs_warning(self, caplog):
        """Test a missing GPU tool yields an absent value and a warning."""
        sampler, adapters = build_sampler()
        adapters["gpu"].get_stats.side_effect = SourceUnavailable("nvidia-smi not found")

        with caplog.at_level(logging.WARNING, logger="sysprobe"):
            metric = sampler.read(MetricKind.GPU_USAGE)

        assert metric.value is None
        assert metric.status is MetricStatus.UNAVAILABLE
        assert "nvidia-smi not found" in metric.error_message
        assert any("gpu_usage" in record.getMessage() for record in caplog.records)

    def test_motherboard_unsupported(self, caplog):
        """Test motherboard temperature is tagged unsupported."""
        sampler, _ = build_sampler()
        with caplog.at_level(logging.WARNING, logger="sysprobe"):
            metric = sampler.read(MetricKind.MOTHERBOARD_TEMPERATURE)
        assert metric.status is MetricStatus.UNSUPPORTED
        assert metric.value is None
        assert caplog.records

    def test_disk_temperature_unsupported(self):
        """Test disk temperature is tagged unsupported."""
        sampler, adapters = build_sampler(disk=DiskAdapter())
        metric = sampler.read(MetricKind.DISK_TEMPERATURE)
        assert metric.status is MetricStatus.UNSUPPORTED

    def test_cpu_temperature_not_supported(self):
        """Test unsupported CPU temperature is distinguished from unavailable."""
        sampler, adapters = build_sampler()
        adapters["cpu"].get_temperature.side_effect = MetricNotSupported("no sensors on darwin")
        assert sampler.read(MetricKind.CPU_TEMPERATURE).status is MetricStatus.UNSUPPORTED

    def test_cpu_temperature_without_sensors(self):
        """Test a host with an empty sensor map reports unsupported."""
        with patch("sysprobe.adapters.cpu_adapter.HAS_WMI", False), \
             patch("sysprobe.adapters.cpu_adapter.psutil.sensors_temperatures",
                   return_value={}, create=True), \
             patch("sysprobe.adapters.cpu_adapter.cpuinfo.get_cpu_info", return_value={}):
            sampler, _ = build_sampler(cpu=CPUAdapter())
            metric = sampler.read(MetricKind.CPU_TEMPERATURE)
        assert metric.status is MetricStatus.UNSUPPORTED
        assert metric.value is None

    def test_rate_uses_configured_interval(self, default_config):
        """Test activity reads pass the configured interval."""
        default_config["sampling"]["interval_seconds"] = 0.5
        sampler, adapters = build_sampler(default_config)
        adapters["network"].get_activity.return_value = NetworkActivity(0.0, 0.0)

        metric = sampler.read(MetricKind.NETWORK_ACTIVITY)
        adapters["network"].get_activity.assert_called_once_with(0.5)
        assert metric.value == NetworkActivity(0.0, 0.0)

    def test_cpu_usage_uses_configured_interval(self, default_config):
        """Test CPU usage is measured over the configured interval."""
        default_config["sampling"]["interval_seconds"] = 0.25
        sampler, adapters = build_sampler(default_config)
        adapters["cpu"].get_usage.return_value = CpuUsage("Test CPU", 40.0)

        metric = sampler.read(MetricKind.CPU_USAGE)
        adapters["cpu"].get_usage.assert_called_once_with(0.25)
        assert metric.value.utilization_percent == 40.0

    def test_counter_regressed_propagates(self):
        """Test a counter regression is a hard failure."""
        sampler, adapters = build_sampler()
        adapters["disk"].get_activity.side_effect = CounterRegressed("read_bytes", 10, 1)
        with pytest.raises(CounterRegressed):
            sampler.read(MetricKind.DISK_ACTIVITY)

    def test_invalid_interval_propagates(self):
        """Test an invalid configured interval is not swallowed."""
        sampler, adapters = build_sampler()
        adapters["network"].get_activity.side_effect = InvalidInterval("interval must be positive")
        with pytest.raises(InvalidInterval):
            sampler.read(MetricKind.NETWORK_ACTIVITY)

    def test_close(self):
        """Test close cleans up every adapter."""
        sampler, adapters = build_sampler()
        sampler.close()
        adapters["cpu"].cleanup.assert_called_once()
        adapters["gpu"].cleanup.assert_called_once()
