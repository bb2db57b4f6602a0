"""Custom exceptions raised by sysprobe probes."""


class SysProbeError(RuntimeError):
    """Base class for probe errors."""


class SourceUnavailable(SysProbeError):
    """Raised when an OS facility or vendor tool cannot be queried."""


class MetricNotSupported(SourceUnavailable):
    """Raised when a metric does not exist on this platform."""


class CounterRegressed(SysProbeError):
    """Raised when a cumulative counter decreased between two samples."""

    def __init__(self, stream_label: str, first_value: int, second_value: int):
        self.stream_label = stream_label
        self.first_value = first_value
        self.second_value = second_value
        super().__init__(
            f"Counter '{stream_label}' regressed from {first_value} to {second_value}"
        )


class InvalidInterval(SysProbeError, ValueError):
    """Raised when a non-positive sampling interval is requested."""
