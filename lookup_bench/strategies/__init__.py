"""
Strategies package for the hash lookup benchmark.

Re-exports the strategy contracts; the PostgreSQL and OpenSearch catalogues are
imported from their own modules so each backend's client library is only
loaded when that suite runs.
"""

from lookup_bench.strategies.abstract import LookupStrategy, Operation, PlanProbe, PlanRunner

__all__ = [
    "LookupStrategy",
    "Operation",
    "PlanProbe",
    "PlanRunner",
]
