"""
sysprobe System Report

Runs every probe in a fixed order and renders the results as console text.
A failing probe is reported inline and the remaining sections still run.

Usage:
    sysprobe [--config path/to/config.yaml] [--interval 1.0] [summary]
    sysprobe processes --name chrome --min-memory-mb 100
    sysprobe services --status running
"""

import sys
import argparse
import logging
from collections import Counter, OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Optional, TextIO

from .adapters import (
    CpuTemperature,
    CpuUsage,
    DiskActivity,
    DiskSpace,
    GpuStats,
    MemoryUsage,
    MetricStatus,
    MetricValue,
    NetworkActivity,
)
from .exceptions import InvalidInterval, MetricNotSupported, SourceUnavailable
from .point_sampler import MetricKind, PointSampler
from .snapshots import (
    ProcessRecord,
    ServiceRecord,
    list_processes,
    list_services,
    take_process_snapshot,
    take_service_snapshot,
    top_processes,
)
from .rate_sampler import validate_interval
from .utils import get_default_config, get_sampling_interval, load_config, setup_logging

# Module logger
logger = logging.getLogger("sysprobe.report")

NOT_AVAILABLE = "N/A"
NOT_SUPPORTED = "Not supported"


def fmt(value: Optional[float], suffix: str = "") -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.2f}{suffix}"


# =============================================================================
# Record renderers
# =============================================================================

def render_cpu_usage(usage: CpuUsage) -> List[str]:
    return [f"Processor: {usage.processor_label}", f"Utilization: {fmt(usage.utilization_percent, '%')}"]


def render_cpu_temperature(temperature: CpuTemperature) -> List[str]:
    return [f"{temperature.processor_label}: {fmt(temperature.celsius, ' °C')}"]


def render_temperature(value: Any) -> List[str]:
    return [fmt(value, " °C")]


def render_memory(usage: MemoryUsage) -> List[str]:
    return [
        f"Total: {fmt(usage.total_gb, ' GB')}",
        f"Free: {fmt(usage.free_gb, ' GB')}",
        f"Used: {fmt(usage.used_percent, '%')}",
    ]


def render_disk_space(volumes: List[DiskSpace]) -> List[str]:
    if not volumes:
        return ["No mounted volumes"]
    return [
        f"{v.drive_name}: {fmt(v.free_gb, ' GB')} free of {fmt(v.total_gb, ' GB')} ({fmt(v.used_percent, '%')} used)"
        for v in volumes
    ]


def render_disk_activity(activity: DiskActivity) -> List[str]:
    return [
        f"Read: {fmt(activity.read_mb_per_second, ' MB/s')}",
        f"Write: {fmt(activity.write_mb_per_second, ' MB/s')}",
    ]


def render_network(activity: NetworkActivity) -> List[str]:
    return [
        f"Send: {fmt(activity.send_mbps, ' Mbps')}",
        f"Receive: {fmt(activity.receive_mbps, ' Mbps')}",
    ]


def render_gpus(gpus: List[GpuStats]) -> List[str]:
    return [
        f"{gpu.gpu_label}: utilization {fmt(gpu.utilization_percent, '%')}, "
        f"temperature {fmt(gpu.celsius, ' °C')}"
        for gpu in gpus
    ]


def render_processes(records: Iterable[ProcessRecord]) -> List[str]:
    lines = [f"{'Name':<32} {'PID':>8} {'CPU (s)':>12} {'Memory (MB)':>12}"]
    for record in records:
        lines.append(
            f"{record.name[:32]:<32} {record.pid:>8} {fmt(record.cpu_time):>12} {fmt(record.memory_mb):>12}"
        )
    return lines


def render_services(records: Iterable[ServiceRecord]) -> List[str]:
    lines = [f"{'Name':<32} {'Status':<16} Display Name"]
    for record in records:
        lines.append(f"{record.service_name[:32]:<32} {record.status:<16} {record.display_name}")
    return lines


def render_service_counts(records: Iterable[ServiceRecord]) -> List[str]:
    counts = Counter(record.status for record in records)
    if not counts:
        return ["No services"]
    return [f"{status}: {count}" for status, count in sorted(counts.items())]


def render_absent(metric: MetricValue) -> List[str]:
    if metric.status is MetricStatus.UNSUPPORTED:
        return [NOT_SUPPORTED]
    return [f"{NOT_AVAILABLE} ({metric.error_message})" if metric.error_message else NOT_AVAILABLE]


RENDERERS: Dict[MetricKind, Callable[[Any], List[str]]] = {
    MetricKind.CPU_USAGE: render_cpu_usage,
    MetricKind.CPU_TEMPERATURE: render_cpu_temperature,
    MetricKind.MOTHERBOARD_TEMPERATURE: render_temperature,
    MetricKind.MEMORY_USAGE: render_memory,
    MetricKind.DISK_SPACE: render_disk_space,
    MetricKind.DISK_TEMPERATURE: render_temperature,
    MetricKind.DISK_ACTIVITY: render_disk_activity,
    MetricKind.NETWORK_ACTIVITY: render_network,
    MetricKind.GPU_USAGE: render_gpus,
}

SECTION_TITLES = OrderedDict([
    (MetricKind.CPU_USAGE, "CPU Usage"),
    (MetricKind.CPU_TEMPERATURE, "CPU Temperature"),
    (MetricKind.MOTHERBOARD_TEMPERATURE, "Motherboard Temperature"),
    (MetricKind.MEMORY_USAGE, "Memory Usage"),
    (MetricKind.DISK_SPACE, "Disk Space"),
    (MetricKind.DISK_TEMPERATURE, "Disk Temperature"),
    (MetricKind.DISK_ACTIVITY, "Disk Activity"),
    (MetricKind.NETWORK_ACTIVITY, "Network Activity"),
    (MetricKind.GPU_USAGE, "GPU"),
])

PROCESSES_SECTION = "Top Processes"
SERVICES_SECTION = "Services"


class SummaryReporter:
    """
    Sequential summary of every probe.

    CPU usage, disk activity and network activity are measured one after
    the other, so a full run blocks for three sampling intervals.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        point_sampler: Optional[PointSampler] = None,
        process_source: Callable[[], List[ProcessRecord]] = take_process_snapshot,
        service_source: Callable[[], List[ServiceRecord]] = take_service_snapshot,
    ):
        self.config = config or get_default_config()
        self.point_sampler = point_sampler or PointSampler(self.config)
        self.top_count = self.config.get("summary", {}).get("top_processes", 5)
        self._process_source = process_source
        self._service_source = service_source

    def render_metric(self, kind: MetricKind) -> List[str]:
        """Render one metric section body; failures become inline text."""
        try:
            metric = self.point_sampler.read(kind)
        except Exception as e:
            logger.error(f"{kind.value} failed: {e}")
            return [f"Error: {e}"]

        if not metric.is_available:
            return render_absent(metric)
        return RENDERERS[kind](metric.value)

    def render_top_processes(self) -> List[str]:
        try:
            snapshot = self._process_source()
        except Exception as e:
            logger.error(f"Process snapshot failed: {e}")
            return [f"Error: {e}"]
        return render_processes(top_processes(snapshot, self.top_count))

    def render_service_summary(self) -> List[str]:
        try:
            snapshot = self._service_source()
        except MetricNotSupported as e:
            logger.warning(f"services: not supported ({e})")
            return [NOT_SUPPORTED]
        except SourceUnavailable as e:
            logger.warning(f"services: unavailable ({e})")
            return [f"{NOT_AVAILABLE} ({e})"]
        except Exception as e:
            logger.error(f"Service snapshot failed: {e}")
            return [f"Error: {e}"]
        return render_service_counts(snapshot)

    def sections(self) -> "OrderedDict[str, Callable[[], List[str]]]":
        """Section titles mapped to their renderers, in report order."""
        sections: "OrderedDict[str, Callable[[], List[str]]]" = OrderedDict()
        for kind, title in SECTION_TITLES.items():
            sections[title] = lambda kind=kind: self.render_metric(kind)
        sections[PROCESSES_SECTION] = self.render_top_processes
        sections[SERVICES_SECTION] = self.render_service_summary
        return sections

    def render(self, titles: Optional[Iterable[str]] = None) -> str:
        """Render the selected sections (all by default) as text."""
        sections = self.sections()
        selected = list(titles) if titles is not None else list(sections)

        blocks = []
        for title in selected:
            body = sections[title]()
            blocks.append("\n".join([f"== {title} =="] + [f"  {line}" for line in body]))
        return "\n\n".join(blocks)

    def run(self, out: Optional[TextIO] = None) -> str:
        """Render every section and print it."""
        text = self.render()
        print(text, file=out or sys.stdout)
        return text


# =============================================================================
# Command line
# =============================================================================

COMMAND_SECTIONS = {
    "cpu": ["CPU Usage", "CPU Temperature"],
    "board": ["Motherboard Temperature"],
    "memory": ["Memory Usage"],
    "disk": ["Disk Space", "Disk Temperature", "Disk Activity"],
    "network": ["Network Activity"],
    "gpu": ["GPU"],
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sysprobe",
        description="sysprobe - Host CPU, memory, disk, network, GPU, process and service probes"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file",
        default=None
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Sampling interval in seconds for disk and network activity",
        default=None
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("summary", help="Print every section (default)")
    for command in COMMAND_SECTIONS:
        subparsers.add_parser(command, help=f"Print {command} metrics")

    processes = subparsers.add_parser("processes", help="List processes")
    processes.add_argument("--name", help="Name substring or wildcard pattern")
    processes.add_argument("--min-cpu", type=float, help="Minimum CPU time in seconds")
    processes.add_argument("--min-memory-mb", type=float, help="Minimum memory in MB")

    services = subparsers.add_parser("services", help="List services")
    services.add_argument("--name", help="Name substring or wildcard pattern")
    services.add_argument("--status", help="Service status, e.g. running or stopped")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the sysprobe command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.verbose:
        config["debug"]["verbose"] = True
        config["debug"]["log_level"] = "DEBUG"
    if args.interval is not None:
        config["sampling"]["interval_seconds"] = args.interval
    setup_logging(config)

    command = args.command or "summary"
    if command not in ("processes", "services"):
        try:
            validate_interval(get_sampling_interval(config))
        except InvalidInterval as e:
            parser.error(str(e))

    if command == "processes":
        records = list_processes(args.name, args.min_cpu, args.min_memory_mb)
        print("\n".join(render_processes(records)))
        return 0

    if command == "services":
        try:
            records = list_services(args.name, args.status)
        except SourceUnavailable as e:
            logger.warning(f"services: {e}")
            print(NOT_SUPPORTED if isinstance(e, MetricNotSupported) else f"{NOT_AVAILABLE} ({e})")
            return 1
        print("\n".join(render_services(records)))
        return 0

    reporter = SummaryReporter(config)
    try:
        if command == "summary":
            reporter.run()
        else:
            print(reporter.render(COMMAND_SECTIONS[command]))
    finally:
        reporter.point_sampler.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
