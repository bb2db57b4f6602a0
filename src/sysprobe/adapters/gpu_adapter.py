"""
GPU Hardware Adapter

Collects GPU utilization and temperature through a vendor diagnostic tool.
The only bundled source runs NVIDIA's ``nvidia-smi`` and parses its CSV
output by column name, so missing or reordered columns and values such as
``[N/A]`` or ``[Not Supported]`` degrade to absent fields.
"""

import csv
import os
import re
import sys
import shutil
import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Optional, List, Sequence

from .base_adapter import BaseHardwareAdapter, HardwareInfo, MetricValue
from ..exceptions import SourceUnavailable

logger = logging.getLogger("sysprobe.adapters.gpu")

NVIDIA_SMI = "nvidia-smi"

if sys.platform == "win32":
    NVIDIA_SMI_LOCATIONS = [
        os.path.join(os.environ.get("ProgramFiles", r"C:\Program Files"),
                     "NVIDIA Corporation", "NVSMI", "nvidia-smi.exe"),
        os.path.join(os.environ.get("SystemRoot", r"C:\Windows"), "System32", "nvidia-smi.exe"),
    ]
else:
    NVIDIA_SMI_LOCATIONS = ["/usr/bin/nvidia-smi", "/usr/local/bin/nvidia-smi", "/opt/nvidia/bin/nvidia-smi"]

QUERY_FIELDS = ("index", "name", "utilization.gpu", "temperature.gpu")


@dataclass
class GpuStats:
    gpu_label: str
    utilization_percent: Optional[float] = None
    celsius: Optional[float] = None


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse a numeric CSV cell, returning None for '[N/A]' and friends."""
    if value is None:
        return None
    cleaned = value.strip().rstrip("%").strip()
    if cleaned.upper().endswith(" C"):
        cleaned = cleaned[:-2].strip()
    try:
        return float(cleaned)
    except ValueError:
        return None


def normalize_header(column: str) -> str:
    """'utilization.gpu [%]' -> 'utilization.gpu'"""
    return re.sub(r"\s*\[.*?\]", "", column).strip().lower()


def parse_gpu_csv(output: str) -> List[GpuStats]:
    """
    Parse ``nvidia-smi --query-gpu=... --format=csv`` output.

    Args:
        output: Raw stdout, including the header row

    Returns:
        One GpuStats per data row; rows without any usable field are dropped
    """
    rows = [row for row in csv.reader(output.strip().splitlines(), skipinitialspace=True) if row]
    if not rows:
        return []

    header = [normalize_header(column) for column in rows[0]]
    stats = []
    for position, row in enumerate(rows[1:]):
        record: Dict[str, str] = {
            column: cell.strip() for column, cell in zip(header, row)
        }

        name = record.get("name") or ""
        if name.startswith("["):
            name = ""
        index = record.get("index") or str(position)
        label = f"GPU {index}: {name}" if name else f"GPU {index}"

        utilization = parse_number(record.get("utilization.gpu"))
        celsius = parse_number(record.get("temperature.gpu"))
        if not name and utilization is None and celsius is None:
            logger.debug(f"Dropping unparseable nvidia-smi row: {row}")
            continue

        stats.append(GpuStats(gpu_label=label, utilization_percent=utilization, celsius=celsius))
    return stats


class GpuDiagnosticsSource(ABC):
    """Capability interface for reading per-GPU statistics."""

    name: str = "gpu"
    vendor: str = "Unknown"

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying tool or library is present on this host."""
        pass

    @abstractmethod
    def query(self) -> List[GpuStats]:
        """
        Read statistics for every GPU.

        Raises:
            SourceUnavailable: If the tool is missing or fails
        """
        pass


class NvidiaSmiSource(GpuDiagnosticsSource):
    """Runs ``nvidia-smi`` from PATH or a known install location."""

    name = NVIDIA_SMI
    vendor = "NVIDIA"

    def __init__(
        self,
        executable: Optional[str] = None,
        timeout_seconds: float = 10,
        search_paths: Optional[Sequence[str]] = None,
    ):
        self._executable = executable
        self._timeout = timeout_seconds
        self._search_paths = list(search_paths) if search_paths is not None else NVIDIA_SMI_LOCATIONS

    def find_executable(self) -> Optional[str]:
        """Resolve the nvidia-smi path, or None if it is not installed."""
        if self._executable:
            return self._executable if os.path.isfile(self._executable) else None

        found = shutil.which(NVIDIA_SMI)
        if found:
            return found
        for candidate in self._search_paths:
            if os.path.isfile(candidate):
                return candidate
        return None

    def is_available(self) -> bool:
        return self.find_executable() is not None

    def query(self) -> List[GpuStats]:
        executable = self.find_executable()
        if executable is None:
            raise SourceUnavailable("nvidia-smi not found on PATH or in known install locations")

        command = [
            executable,
            f"--query-gpu={','.join(QUERY_FIELDS)}",
            "--format=csv,nounits",
        ]
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=True,
            )
        except subprocess.TimeoutExpired as e:
            raise SourceUnavailable(f"nvidia-smi timed out after {self._timeout}s") from e
        except subprocess.CalledProcessError as e:
            message = (e.stderr or e.stdout or "").strip()
            raise SourceUnavailable(f"nvidia-smi exited with {e.returncode}: {message}") from e
        except OSError as e:
            raise SourceUnavailable(f"nvidia-smi could not be started: {e}") from e

        return parse_gpu_csv(result.stdout)


class GPUAdapter(BaseHardwareAdapter):
    """
    GPU metrics adapter backed by a GpuDiagnosticsSource.

    Collects:
        - GPU utilization percentage
        - GPU temperature
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        source: Optional[GpuDiagnosticsSource] = None,
    ):
        super().__init__(config)
        gpu_config = self.config.get("gpu", {})
        self._source = source or NvidiaSmiSource(
            executable=gpu_config.get("executable"),
            timeout_seconds=gpu_config.get("timeout_seconds", 10),
        )

    @property
    def source(self) -> GpuDiagnosticsSource:
        return self._source

    def initialize(self) -> bool:
        """Check that the diagnostic tool is installed."""
        if not self._source.is_available():
            logger.debug(f"{self._source.name} is not available")
            return False
        self._initialized = True
        return True

    def get_hardware_info(self) -> Optional[HardwareInfo]:
        """Identify the first GPU reported by the source."""
        if self._hardware_info:
            return self._hardware_info

        try:
            gpus = self._source.query()
        except SourceUnavailable as e:
            self.record_error(str(e))
            return None
        if not gpus:
            return None

        self._hardware_info = HardwareInfo(
            vendor=self._source.vendor,
            model=gpus[0].gpu_label,
            identifier=f"GPU_{len(gpus)}devices",
            additional_info={
                "gpu_count": len(gpus),
                "gpus": [gpu.gpu_label for gpu in gpus],
            }
        )
        return self._hardware_info

    def get_stats(self) -> List[GpuStats]:
        """
        Read utilization and temperature for every GPU.

        Raises:
            SourceUnavailable: If the diagnostic tool is missing, fails,
                or reports no GPUs
        """
        gpus = self._source.query()
        if not gpus:
            raise SourceUnavailable(f"{self._source.name} reported no GPUs")
        return gpus

    def collect_metrics(self) -> Dict[str, MetricValue]:
        """Collect current GPU metrics for all detected GPUs."""
        metrics = {}

        try:
            gpus = self.get_stats()
        except SourceUnavailable as e:
            self.record_error(str(e))
            return metrics

        for gpu_idx, gpu in enumerate(gpus):
            prefix = f"gpu{gpu_idx}_" if len(gpus) > 1 else ""

            if gpu.utilization_percent is not None:
                metrics[f"{prefix}utilization"] = MetricValue(
                    name=f"{prefix}utilization",
                    value=gpu.utilization_percent,
                    unit="%",
                    source=self._source.name
                )
            if gpu.celsius is not None:
                metrics[f"{prefix}temperature"] = MetricValue(
                    name=f"{prefix}temperature",
                    value=gpu.celsius,
                    unit="°C",
                    source=self._source.name
                )

        self._last_metrics = metrics
        self.reset_error_count()
        return metrics

    def cleanup(self) -> None:
        """Cleanup resources."""
        self._initialized = False
