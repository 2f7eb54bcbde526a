"""
Exception types raised by the hash lookup benchmark.

Backend driver exceptions (psycopg, asyncpg, opensearch-py) are not wrapped;
these cover the conditions the benchmark itself detects.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class LookupBenchError(Exception):
    """Base exception for benchmark and loader failures."""


class SetupError(LookupBenchError):
    """The dataset is empty or inconsistent, so no benchmark can run against it."""


class BulkRejectedError(LookupBenchError):
    """
    A bulk request reached the backend but some items were rejected.

    Parameters
    ----------
    message : str
        Human-readable summary.
    failed : int
        Number of rejected items in the batch.
    sample : list[dict] | None
        A few of the per-item error payloads, for diagnosis.
    """

    def __init__(
        self,
        message: str,
        failed: int = 0,
        sample: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        self.failed = failed
        self.sample = sample or []


__all__ = ["LookupBenchError", "SetupError", "BulkRejectedError"]
