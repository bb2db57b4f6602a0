"""
Hardware Adapters Module

One adapter per hardware area. Each implements the BaseHardwareAdapter
interface and adds typed probe operations that raise the exceptions in
sysprobe.exceptions on failure.

Available Adapters:
    - cpu_adapter: CPU utilization and temperature
    - memory_adapter: Physical memory usage
    - disk_adapter: Volume space, disk throughput, disk temperature stub
    - network_adapter: Network throughput
    - gpu_adapter: GPU utilization and temperature via nvidia-smi
    - board_adapter: Motherboard identification and temperature stub
"""

from .base_adapter import BaseHardwareAdapter, HardwareInfo, MetricStatus, MetricValue
from .cpu_adapter import CPUAdapter, CpuUsage, CpuTemperature
from .memory_adapter import MemoryAdapter, MemoryUsage
from .disk_adapter import DiskAdapter, DiskActivity, DiskSpace
from .network_adapter import NetworkAdapter, NetworkActivity
from .gpu_adapter import GPUAdapter, GpuDiagnosticsSource, GpuStats, NvidiaSmiSource
from .board_adapter import MotherboardAdapter

__all__ = [
    "BaseHardwareAdapter",
    "HardwareInfo",
    "MetricStatus",
    "MetricValue",
    "CPUAdapter",
    "CpuUsage",
    "CpuTemperature",
    "MemoryAdapter",
    "MemoryUsage",
    "DiskAdapter",
    "DiskActivity",
    "DiskSpace",
    "NetworkAdapter",
    "NetworkActivity",
    "GPUAdapter",
    "GpuDiagnosticsSource",
    "GpuStats",
    "NvidiaSmiSource",
    "MotherboardAdapter",
]
