"""
Strategy contracts for the hash lookup benchmark.

A strategy is a named, zero-argument async operation that performs one point
lookup against a backend and fully consumes the response. Concrete catalogues
(PostgreSQL, OpenSearch) build lists of `LookupStrategy` closures over a shared
client and a fixed `LookupKeySet`, so every strategy in a run hits the same key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List

Operation = Callable[[], Awaitable[Any]]
PlanRunner = Callable[[], Awaitable[List[str]]]


@dataclass(frozen=True)
class LookupStrategy:
    """
    One access strategy in a comparative run.

    Attributes
    ----------
    name : str
        Report label; unique within one run.
    operation : Operation
        Zero-argument coroutine function executing a single lookup.
    expensive : bool
        Marks full-scan strategies whose measured iterations are capped.
    description : str
        A human-friendly summary of the approach.
    """

    name: str
    operation: Operation
    expensive: bool = False
    description: str = ""


@dataclass(frozen=True)
class PlanProbe:
    """
    A representative query re-issued in explain/profile mode.

    `run` returns the plan or profile as display lines.
    """

    label: str
    run: PlanRunner


__all__ = ["Operation", "PlanRunner", "LookupStrategy", "PlanProbe"]
