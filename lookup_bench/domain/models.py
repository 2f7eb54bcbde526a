"""
Domain models for the hash lookup benchmark.

Defines the seed record shape shared by both backends, the per-strategy
benchmark result, the lookup keys drawn for a run, and the loader's progress and
outcome reports. All of these are process-local; only the rows/documents written
by the loader outlive a run.
"""
from __future__ import annotations

import re
import statistics
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator, model_validator

from lookup_bench.errors import SetupError

HASH_LENGTH = 64
_HEX_RE = re.compile(r"^[0-9a-f]{64}$")


class SeedRecord(BaseModel):
    """
    One generated row/document.

    The same `hash` fills every hash-bearing column (`hash_btree`, `hash_hash`,
    `hash_noindex`) or field (`hash_keyword`, `hash_text`).
    """

    hash: str = Field(..., description="64 lowercase hex characters (32 random bytes).")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: int = Field(0, description="Fixed sentinel status code.")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
    }

    @field_validator("hash")
    @classmethod
    def _check_hash(cls, value: str) -> str:
        if not _HEX_RE.match(value):
            raise ValueError(f"hash must be {HASH_LENGTH} lowercase hex characters")
        return value

    def as_document(self) -> Dict[str, Any]:
        """Render the record as an OpenSearch document."""
        return {
            "hash_keyword": self.hash,
            "hash_text": self.hash,
            "created_at": self.created_at.isoformat(),
            "status": self.status,
            "metadata": dict(self.metadata),
        }


class BenchmarkResult(BaseModel):
    """
    Aggregate latency of one strategy over a sequence of samples.

    Build instances through `from_samples`; a result is never made from zero
    samples.
    """

    method: str
    avg_ms: float = Field(..., ge=0.0)
    min_ms: float = Field(..., ge=0.0)
    max_ms: float = Field(..., ge=0.0)
    iterations: int = Field(..., ge=1)

    model_config = {
        "frozen": True,
    }

    @model_validator(mode="after")
    def _check_ordering(self) -> "BenchmarkResult":
        if not self.min_ms <= self.avg_ms <= self.max_ms:
            raise ValueError(
                f"expected min <= avg <= max, got {self.min_ms} / {self.avg_ms} / {self.max_ms}"
            )
        return self

    @classmethod
    def from_samples(cls, method: str, samples: Sequence[float]) -> "BenchmarkResult":
        """
        Reduce elapsed-millisecond samples to avg/min/max/count.

        Raises
        ------
        ValueError
            If `samples` is empty.
        """
        if not samples:
            raise ValueError(f"cannot build a result for '{method}' from zero samples")
        minimum = min(samples)
        maximum = max(samples)
        # float rounding can push the mean one ulp outside [min, max]
        average = min(max(statistics.fmean(samples), minimum), maximum)
        return cls(
            method=method,
            avg_ms=average,
            min_ms=minimum,
            max_ms=maximum,
            iterations=len(samples),
        )


class LookupKeySet(BaseModel):
    """
    One existing key per distinguishing dimension, drawn once per run.
    """

    keys: Dict[str, str]

    model_config = {
        "frozen": True,
    }

    def __getitem__(self, dimension: str) -> str:
        try:
            return self.keys[dimension]
        except KeyError:
            raise SetupError(f"no lookup key drawn for dimension '{dimension}'") from None

    def dimensions(self) -> List[str]:
        return list(self.keys)


class LoadProgress(BaseModel):
    """Snapshot emitted by the loader; reporting only."""

    inserted: int = Field(..., ge=0)
    target: int = Field(..., ge=0)
    elapsed_seconds: float = Field(..., ge=0.0)

    @property
    def rate(self) -> float:
        return self.inserted / self.elapsed_seconds if self.elapsed_seconds > 0 else 0.0

    @property
    def percent(self) -> float:
        return self.inserted / self.target * 100 if self.target else 100.0


class LoadReport(BaseModel):
    """Final outcome of a bulk load, including partial progress on abort."""

    writer: str
    inserted: int = 0
    target: int = 0
    batches: int = 0
    retries: int = 0
    elapsed_seconds: float = 0.0
    aborted: bool = False
    error: Optional[str] = None

    @property
    def rate(self) -> float:
        return self.inserted / self.elapsed_seconds if self.elapsed_seconds > 0 else 0.0


class TableStats(BaseModel):
    """Catalog figures for the relational table."""

    table: str
    row_count: int
    total_size: str
    index_sizes: Dict[str, str] = Field(default_factory=dict)


class IndexStats(BaseModel):
    """Document count, store size, and field mapping for the search index."""

    index: str
    doc_count: int
    size_bytes: int
    field_types: Dict[str, str] = Field(default_factory=dict)

    @property
    def size_mb(self) -> float:
        return self.size_bytes / 1024 / 1024


class PlanReport(BaseModel):
    """Execution plan or profile output for one representative query."""

    label: str
    lines: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


__all__ = [
    "HASH_LENGTH",
    "SeedRecord",
    "BenchmarkResult",
    "LookupKeySet",
    "LoadProgress",
    "LoadReport",
    "TableStats",
    "IndexStats",
    "PlanReport",
]
