"""
Sampled Rate Measurement

Derives throughput rates from cumulative, monotonically increasing counters
(bytes sent/received, bytes read/written) by reading them twice across a
fixed interval.

Each measurement owns its two snapshots; nothing is cached between calls.
When a source exposes several streams (disk read and write), every snapshot
captures all of them from a single OS read so the derived rates share one
time base.
"""

import math
import time
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Optional, Tuple

from .exceptions import CounterRegressed, InvalidInterval, SourceUnavailable

logger = logging.getLogger("sysprobe.rate_sampler")

BYTES_PER_MEGABYTE = 1024 ** 2

UnitConverter = Callable[[float], float]


def bytes_to_megabytes(bytes_per_second: float) -> float:
    """Bytes/s to binary megabytes/s (1 MB = 1,048,576 bytes)."""
    return bytes_per_second / BYTES_PER_MEGABYTE


def bytes_to_megabits(bytes_per_second: float) -> float:
    """Bytes/s to binary megabits/s (bits / 1,048,576)."""
    return bytes_per_second * 8 / BYTES_PER_MEGABYTE


def identity(bytes_per_second: float) -> float:
    return bytes_per_second


def round_half_away(value: float, digits: int = 2) -> float:
    """Round half away from zero, unlike the built-in banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


@dataclass(frozen=True)
class CounterSample:
    """One raw cumulative counter reading for a single stream."""
    timestamp: float
    cumulative_value: int


@dataclass(frozen=True)
class RateMeasurement:
    """A rate derived from two samples of the same stream."""
    stream_label: str
    interval_seconds: float
    rate_per_second: float
    unit: str = ""


class CounterSource(ABC):
    """
    Something that reports aggregate cumulative counters.

    Subclasses declare their stream labels and return one non-negative
    integer per stream from ``read_counters``. Implementations raise
    ``SourceUnavailable`` when the OS facility cannot be queried.
    """

    name: str = "counter"
    streams: Tuple[str, ...] = ()

    @abstractmethod
    def read_counters(self) -> Dict[str, int]:
        """Return the current cumulative value for every stream."""
        pass


def validate_interval(interval_seconds: float) -> float:
    """Return the interval as a float or raise InvalidInterval."""
    try:
        interval = float(interval_seconds)
    except (TypeError, ValueError):
        raise InvalidInterval(f"Sampling interval must be a number, got {interval_seconds!r}")
    if not math.isfinite(interval) or interval <= 0:
        raise InvalidInterval(f"Sampling interval must be positive, got {interval_seconds!r}")
    return interval


def compute_rate(
    stream_label: str,
    first: CounterSample,
    second: CounterSample,
    interval_seconds: float,
    unit_converter: UnitConverter = identity,
    unit: str = "",
) -> RateMeasurement:
    """
    Compute the rate between two samples of one stream.

    Args:
        stream_label: Name of the stream, used in the result and errors
        first: Sample taken at the start of the interval
        second: Sample taken at the end of the interval
        interval_seconds: Length of the interval the samples span
        unit_converter: Maps bytes/s to the presentation unit
        unit: Label of the presentation unit

    Returns:
        RateMeasurement rounded to 2 decimals

    Raises:
        InvalidInterval: If interval_seconds is not positive
        CounterRegressed: If the counter decreased between the samples
    """
    interval = validate_interval(interval_seconds)
    delta = second.cumulative_value - first.cumulative_value
    if delta < 0:
        raise CounterRegressed(stream_label, first.cumulative_value, second.cumulative_value)

    rate = unit_converter(delta / interval)
    return RateMeasurement(
        stream_label=stream_label,
        interval_seconds=interval,
        rate_per_second=round_half_away(rate, 2),
        unit=unit,
    )


class RateSampler:
    """
    Two-sample rate collector.

    The wait between the two samples is a plain blocking sleep; there is no
    cancellation. ``sleep`` and ``clock`` can be replaced for testing.
    """

    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._sleep = sleep
        self._clock = clock

    def snapshot(self, source: CounterSource) -> Dict[str, CounterSample]:
        """Read every stream of ``source`` from a single OS query."""
        try:
            counters = source.read_counters()
        except SourceUnavailable:
            raise
        except OSError as e:
            raise SourceUnavailable(f"{source.name}: {e}") from e

        timestamp = self._clock()
        samples = {}
        for stream in source.streams:
            value = counters.get(stream, 0)
            if value < 0:
                raise SourceUnavailable(f"{source.name} reported a negative '{stream}' counter")
            samples[stream] = CounterSample(timestamp=timestamp, cumulative_value=int(value))
        return samples

    def sample(self, source: CounterSource, stream: Optional[str] = None) -> CounterSample:
        """Read the current cumulative value of one stream."""
        stream = self._resolve_stream(source, stream)
        return self.snapshot(source)[stream]

    def measure_rates(
        self,
        source: CounterSource,
        interval_seconds: float,
        unit_converter: UnitConverter = identity,
        unit: str = "",
    ) -> Dict[str, RateMeasurement]:
        """
        Measure every stream of ``source`` over one snapshot pair.

        Raises:
            InvalidInterval: Before any sampling, if the interval is not positive
            SourceUnavailable: If the source cannot be read
            CounterRegressed: If any stream decreased during the interval
        """
        interval = validate_interval(interval_seconds)

        first = self.snapshot(source)
        self._sleep(interval)
        second = self.snapshot(source)

        rates = {
            stream: compute_rate(
                stream, first[stream], second[stream], interval, unit_converter, unit
            )
            for stream in source.streams
        }
        logger.debug(f"{source.name} rates over {interval}s: {rates}")
        return rates

    def measure_rate(
        self,
        source: CounterSource,
        interval_seconds: float,
        unit_converter: UnitConverter = identity,
        stream: Optional[str] = None,
        unit: str = "",
    ) -> RateMeasurement:
        """Measure a single stream of ``source``."""
        interval = validate_interval(interval_seconds)
        stream = self._resolve_stream(source, stream)
        return self.measure_rates(source, interval, unit_converter, unit)[stream]

    @staticmethod
    def _resolve_stream(source: CounterSource, stream: Optional[str]) -> str:
        if not source.streams:
            raise SourceUnavailable(f"{source.name} exposes no counter streams")
        if stream is None:
            return source.streams[0]
        if stream not in source.streams:
            raise KeyError(f"{source.name} has no stream '{stream}'")
        return stream
