"""
Process and Service Snapshots

Point-in-time listings of running processes and installed services, plus
the single-pass filters applied to them. Entries that disappear or refuse
access while the listing is being built are skipped.
"""

import sys
import shutil
import fnmatch
import logging
import subprocess
from dataclasses import dataclass
from typing import Iterable, List, Optional

import psutil

from .exceptions import MetricNotSupported, SourceUnavailable
from .utils import bytes_to_mb

logger = logging.getLogger("sysprobe.snapshots")

SYSTEMCTL_LIST_UNITS = [
    "systemctl", "list-units", "--type=service", "--all",
    "--no-pager", "--no-legend", "--plain",
]

# systemd sub-states mapped onto the Windows service vocabulary
SYSTEMD_STATUS = {
    "running": "running",
    "dead": "stopped",
    "failed": "stopped",
    "start": "start_pending",
    "start-pre": "start_pending",
    "start-post": "start_pending",
    "stop": "stop_pending",
    "stop-sigterm": "stop_pending",
    "stop-post": "stop_pending",
    "reload": "continue_pending",
}


@dataclass
class ProcessRecord:
    name: str
    cpu_time: Optional[float]
    memory_mb: Optional[float]
    pid: int = 0


@dataclass
class ServiceRecord:
    display_name: str
    status: str
    service_name: str


def matches_name(pattern: Optional[str], *candidates: Optional[str]) -> bool:
    """
    Case-insensitive name match.

    Patterns containing ``*``, ``?`` or ``[`` are shell wildcards; anything
    else matches as a substring. An absent pattern matches everything.
    """
    if not pattern:
        return True
    needle = pattern.lower()
    is_wildcard = any(ch in needle for ch in "*?[")
    for candidate in candidates:
        if not candidate:
            continue
        value = candidate.lower()
        if is_wildcard:
            if fnmatch.fnmatchcase(value, needle):
                return True
        elif needle in value:
            return True
    return False


# =============================================================================
# Processes
# =============================================================================

def take_process_snapshot() -> List[ProcessRecord]:
    """List every process visible to the current user."""
    records = []
    for proc in psutil.process_iter(["pid", "name", "cpu_times", "memory_info"]):
        try:
            info = proc.info
            cpu_times = info.get("cpu_times")
            memory_info = info.get("memory_info")
            records.append(ProcessRecord(
                name=info.get("name") or "",
                cpu_time=round(cpu_times.user + cpu_times.system, 2) if cpu_times else None,
                memory_mb=bytes_to_mb(memory_info.rss) if memory_info else None,
                pid=info.get("pid") or 0,
            ))
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
    return records


@dataclass
class ProcessFilter:
    """
    Filter for process snapshots.

    Attributes:
        name_pattern: Substring or wildcard matched against the process name
        min_cpu: Minimum accumulated CPU time in seconds
        min_memory_mb: Minimum resident memory in binary MB
    """
    name_pattern: Optional[str] = None
    min_cpu: Optional[float] = None
    min_memory_mb: Optional[float] = None

    def matches(self, record: ProcessRecord) -> bool:
        if not matches_name(self.name_pattern, record.name):
            return False
        if self.min_cpu is not None and (record.cpu_time is None or record.cpu_time < self.min_cpu):
            return False
        if self.min_memory_mb is not None and (
            record.memory_mb is None or record.memory_mb < self.min_memory_mb
        ):
            return False
        return True

    def apply(self, snapshot: Iterable[ProcessRecord]) -> List[ProcessRecord]:
        return [record for record in snapshot if self.matches(record)]


def list_processes(
    name: Optional[str] = None,
    min_cpu: Optional[float] = None,
    min_memory_mb: Optional[float] = None,
) -> List[ProcessRecord]:
    """Snapshot the process table and filter it."""
    return ProcessFilter(name, min_cpu, min_memory_mb).apply(take_process_snapshot())


def top_processes(snapshot: Iterable[ProcessRecord], count: int = 5) -> List[ProcessRecord]:
    """The ``count`` processes with the most accumulated CPU time."""
    return sorted(snapshot, key=lambda r: r.cpu_time or 0.0, reverse=True)[:count]


# =============================================================================
# Services
# =============================================================================

def _windows_services() -> List[ServiceRecord]:
    records = []
    try:
        services = list(psutil.win_service_iter())
    except OSError as e:
        raise SourceUnavailable(f"Service control manager unavailable: {e}") from e

    for service in services:
        try:
            records.append(ServiceRecord(
                display_name=service.display_name(),
                status=service.status(),
                service_name=service.name(),
            ))
        except (psutil.NoSuchProcess, psutil.AccessDenied, OSError) as e:
            logger.debug(f"Skipping service {service!r}: {e}")
            continue
    return records


def parse_systemctl_units(output: str) -> List[ServiceRecord]:
    """Parse ``systemctl list-units --plain --no-legend`` output."""
    records = []
    for line in output.splitlines():
        fields = line.split(None, 4)
        if len(fields) < 4 or not fields[0].endswith(".service"):
            continue
        unit, _load, _active, sub = fields[:4]
        description = fields[4].strip() if len(fields) > 4 else ""
        service_name = unit[:-len(".service")]
        records.append(ServiceRecord(
            display_name=description or service_name,
            status=SYSTEMD_STATUS.get(sub, sub),
            service_name=service_name,
        ))
    return records


def _systemd_services() -> List[ServiceRecord]:
    if shutil.which("systemctl") is None:
        raise MetricNotSupported("No service manager found (systemctl missing)")

    try:
        result = subprocess.run(
            SYSTEMCTL_LIST_UNITS,
            capture_output=True,
            text=True,
            timeout=30,
            check=True,
        )
    except subprocess.TimeoutExpired as e:
        raise SourceUnavailable("systemctl timed out") from e
    except subprocess.CalledProcessError as e:
        raise SourceUnavailable(f"systemctl exited with {e.returncode}: {(e.stderr or '').strip()}") from e
    except OSError as e:
        raise SourceUnavailable(f"systemctl could not be started: {e}") from e

    return parse_systemctl_units(result.stdout)


def take_service_snapshot() -> List[ServiceRecord]:
    """
    List every service known to the host service manager.

    Raises:
        MetricNotSupported: If the platform has no supported service manager
        SourceUnavailable: If the service manager cannot be queried
    """
    if sys.platform == "win32":
        return _windows_services()
    if sys.platform.startswith("linux"):
        return _systemd_services()
    raise MetricNotSupported(f"Service listing is not supported on {sys.platform}")


@dataclass
class ServiceFilter:
    """
    Filter for service snapshots.

    Attributes:
        name_pattern: Substring or wildcard matched against service or display name
        status: Exact status, compared case-insensitively (e.g. 'running')
    """
    name_pattern: Optional[str] = None
    status: Optional[str] = None

    def matches(self, record: ServiceRecord) -> bool:
        if not matches_name(self.name_pattern, record.service_name, record.display_name):
            return False
        if self.status and record.status.lower() != self.status.lower():
            return False
        return True

    def apply(self, snapshot: Iterable[ServiceRecord]) -> List[ServiceRecord]:
        return [record for record in snapshot if self.matches(record)]


def list_services(name: Optional[str] = None, status: Optional[str] = None) -> List[ServiceRecord]:
    """Snapshot the service table and filter it."""
    return ServiceFilter(name, status).apply(take_service_snapshot())
