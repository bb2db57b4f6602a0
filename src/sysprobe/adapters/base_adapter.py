"""
Base Hardware Adapter Interface

All hardware adapters inherit from BaseHardwareAdapter and implement the
required methods. This keeps initialization, identification and metric
collection consistent across CPU, memory, disk, network, GPU and board probes.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime


class MetricStatus(str, Enum):
    """Outcome of a single metric read."""
    OK = "ok"
    UNAVAILABLE = "unavailable"
    UNSUPPORTED = "unsupported"


@dataclass
class MetricValue:
    """Represents a single metric measurement."""
    name: str
    value: Any
    unit: str
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = ""
    status: MetricStatus = MetricStatus.OK
    error_message: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.status is MetricStatus.OK

    @property
    def is_supported(self) -> bool:
        return self.status is not MetricStatus.UNSUPPORTED

    @classmethod
    def unavailable(cls, name: str, unit: str, reason: str, source: str = "") -> "MetricValue":
        """Build an absent value for a transient or environmental failure."""
        return cls(
            name=name,
            value=None,
            unit=unit,
            source=source,
            status=MetricStatus.UNAVAILABLE,
            error_message=reason,
        )

    @classmethod
    def unsupported(cls, name: str, unit: str, reason: str, source: str = "") -> "MetricValue":
        """Build an absent value for a feature this platform does not offer."""
        return cls(
            name=name,
            value=None,
            unit=unit,
            source=source,
            status=MetricStatus.UNSUPPORTED,
            error_message=reason,
        )


@dataclass
class HardwareInfo:
    """Represents hardware identification information."""
    vendor: str
    model: str
    identifier: str
    driver_version: Optional[str] = None
    firmware_version: Optional[str] = None
    capabilities: List[str] = field(default_factory=list)
    additional_info: Dict[str, Any] = field(default_factory=dict)


class BaseHardwareAdapter(ABC):
    """
    Abstract base class for all hardware adapters.

    Subclasses implement the four abstract methods and add their own typed
    probe operations (``get_usage``, ``get_activity`` and so on) which raise
    exceptions from ``sysprobe.exceptions`` on failure. ``collect_metrics``
    is the forgiving counterpart: it never raises and records errors instead.

    Example:
        class MyCustomAdapter(BaseHardwareAdapter):
            def initialize(self) -> bool:
                return True

            def get_hardware_info(self) -> HardwareInfo:
                ...

            def collect_metrics(self) -> Dict[str, MetricValue]:
                ...

            def cleanup(self) -> None:
                ...
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the adapter with optional configuration.

        Args:
            config: Optional configuration dictionary (see utils.get_default_config)
        """
        self.config = config or {}
        self._initialized = False
        self._hardware_info: Optional[HardwareInfo] = None
        self._last_metrics: Dict[str, MetricValue] = {}
        self._error_count = 0
        self._max_errors = 10
        self._last_error: Optional[str] = None

    @property
    def is_initialized(self) -> bool:
        """Check if the adapter has been successfully initialized."""
        return self._initialized

    @property
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        return self.__class__.__name__

    @property
    def last_error(self) -> Optional[str]:
        """Most recent error message recorded by this adapter."""
        return self._last_error

    @abstractmethod
    def initialize(self) -> bool:
        """
        Initialize the hardware adapter.

        Returns:
            True if initialization was successful, False otherwise
        """
        pass

    @abstractmethod
    def get_hardware_info(self) -> Optional[HardwareInfo]:
        """
        Get hardware identification information.

        Returns:
            HardwareInfo object, or None if it cannot be retrieved
        """
        pass

    @abstractmethod
    def collect_metrics(self) -> Dict[str, MetricValue]:
        """
        Collect current hardware metrics.

        Returns:
            Dictionary mapping metric names to MetricValue objects
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Release any resources held by the adapter."""
        pass

    def get_metric_names(self) -> List[str]:
        """
        Get list of metric names from the last collection.

        Returns:
            List of metric name strings
        """
        if self._last_metrics:
            return list(self._last_metrics.keys())
        return []

    def is_available(self) -> bool:
        """
        Check if the hardware is currently available.

        Returns:
            True if hardware is accessible, False otherwise
        """
        return self._initialized and self._error_count < self._max_errors

    def record_error(self, error_message: str) -> None:
        """
        Record an error occurrence.

        Args:
            error_message: Description of the error
        """
        self._error_count += 1
        self._last_error = error_message

    def reset_error_count(self) -> None:
        """Reset the error counter after successful operations."""
        self._error_count = 0

    @staticmethod
    def record_metrics(
        record: Any,
        units: Dict[str, str],
        prefix: str = "",
        source: str = "psutil",
    ) -> Dict[str, MetricValue]:
        """
        Flatten a probe record into MetricValues.

        Only the fields named in ``units`` are emitted, keyed as
        ``prefix + field``.
        """
        metrics = {}
        for field_name, unit in units.items():
            name = f"{prefix}{field_name}"
            metrics[name] = MetricValue(
                name=name,
                value=getattr(record, field_name),
                unit=unit,
                source=source
            )
        return metrics

    def __enter__(self):
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.cleanup()
        return False
