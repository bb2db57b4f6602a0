"""
Pytest Configuration and Fixtures

Provides shared fixtures and configuration for all tests.
"""

import pytest
import tempfile
import os
import sys
from pathlib import Path
from typing import Dict, List

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sysprobe.rate_sampler import CounterSource, RateSampler
from sysprobe.utils import get_default_config


class StubCounterSource(CounterSource):
    """Counter source replaying scripted readings and counting reads."""

    name = "stub"

    def __init__(self, readings: List[Dict[str, int]], streams=("value",)):
        self.streams = tuple(streams)
        self._readings = list(readings)
        self.calls = 0

    def read_counters(self) -> Dict[str, int]:
        reading = self._readings[min(self.calls, len(self._readings) - 1)]
        self.calls += 1
        return reading


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def default_config():
    """Provide default configuration."""
    return get_default_config()


@pytest.fixture
def fake_clock():
    """Provide a fake clock whose sleep returns immediately."""
    return FakeClock()


@pytest.fixture
def rate_sampler(fake_clock):
    """Provide a RateSampler that never actually blocks."""
    return RateSampler(sleep=fake_clock.sleep, clock=fake_clock)


@pytest.fixture
def stub_source_factory():
    """Provide a factory for scripted counter sources."""
    return StubCounterSource


@pytest.fixture
def temp_config_file():
    """Provide temporary config file."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write("sampling:\n  interval_seconds: 2.5\n")
        temp_path = f.name

    yield temp_path

    if os.path.exists(temp_path):
        os.unlink(temp_path)
