"""
Utilities package for the hash lookup benchmark.

Exports shared helpers for logging and resource monitoring.
Keep this package lightweight and free of domain-specific logic.
"""

from lookup_bench.utils.logging import configure_logging, get_logger
from lookup_bench.utils.profiler import ResourceStats, resource_monitor

__all__ = [
    "configure_logging",
    "get_logger",
    "ResourceStats",
    "resource_monitor",
]
