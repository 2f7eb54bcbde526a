"""
Domain package for the hash lookup benchmark.

Exports the models shared by the loader, harness, runner, and reporters.
Keep this package focused on data definitions and validation concerns.
"""

from lookup_bench.domain.models import (
    HASH_LENGTH,
    BenchmarkResult,
    IndexStats,
    LoadProgress,
    LoadReport,
    LookupKeySet,
    PlanReport,
    SeedRecord,
    TableStats,
)

__all__ = [
    "HASH_LENGTH",
    "BenchmarkResult",
    "IndexStats",
    "LoadProgress",
    "LoadReport",
    "LookupKeySet",
    "PlanReport",
    "SeedRecord",
    "TableStats",
]
