"""
Lookup Bench - latency benchmark for hash-key point lookups.

Seeds a synthetic corpus of 64-character hex hashes into PostgreSQL and
OpenSearch, then measures single-key lookups through several access paths:

- B-tree, hash, and unindexed columns in PostgreSQL
- asyncpg, SQLAlchemy raw SQL, and SQLAlchemy ORM client layers
- keyword vs. analyzed text fields and query types in OpenSearch

Each suite reports per-strategy latency, overhead against a baseline, and the
backend's own plan or profile for representative lookups.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from lookup_bench.config import Settings, get_settings
from lookup_bench.domain.models import BenchmarkResult, LoadReport, LookupKeySet, SeedRecord
from lookup_bench.harness import measure
from lookup_bench.loader import BatchLoader, BulkWriter
from lookup_bench.runner import ComparisonReport, RunConfig, format_overhead, run_comparison
from lookup_bench.strategies.abstract import LookupStrategy, PlanProbe
from lookup_bench.utils.logging import configure_logging, get_logger
from lookup_bench.utils.profiler import ResourceStats, resource_monitor

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Models
    "BenchmarkResult",
    "LoadReport",
    "LookupKeySet",
    "SeedRecord",
    # Measurement
    "measure",
    "run_comparison",
    "RunConfig",
    "ComparisonReport",
    "format_overhead",
    "LookupStrategy",
    "PlanProbe",
    # Loading
    "BatchLoader",
    "BulkWriter",
    # Logging
    "configure_logging",
    "get_logger",
    # Resources
    "ResourceStats",
    "resource_monitor",
]
