"""
sysprobe - Host Metrics Probes

A small library of independent, synchronous probes that each issue a single
OS query and reshape the result into a labeled record.

Modules:
    - adapters: Hardware adapters (CPU, memory, disk, network, GPU, motherboard)
    - rate_sampler: Two-sample throughput measurement for cumulative counters
    - point_sampler: Single-shot reads tagged as available/unavailable/unsupported
    - snapshots: Process and service listings with filters
    - system_report: Sequential summary report and command line entry point
    - utils: Configuration and logging helpers
"""

__version__ = "1.0.0"
__author__ = "sysprobe Contributors"
__license__ = "Apache-2.0"
