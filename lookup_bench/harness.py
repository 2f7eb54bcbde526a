"""
Benchmark harness: turn an async operation into a latency distribution.

Iterations run strictly one after another; the next call never starts before
the previous one has resolved, so samples of one strategy never contend for the
same connection or cache.
"""

from __future__ import annotations

import time
from typing import Callable, List

from lookup_bench.domain.models import BenchmarkResult
from lookup_bench.strategies.abstract import Operation
from lookup_bench.utils.logging import get_logger

log = get_logger(__name__)

Clock = Callable[[], float]


async def measure(
    name: str,
    operation: Operation,
    iterations: int,
    clock: Clock = time.perf_counter,
) -> BenchmarkResult:
    """
    Invoke `operation` `iterations` times and summarize the elapsed times.

    Parameters
    ----------
    name : str
        Strategy label copied into the result.
    operation : Operation
        Zero-argument coroutine function. Its return value is discarded.
    iterations : int
        Number of timed invocations; must be >= 1.
    clock : Callable[[], float]
        Monotonic clock in seconds.

    Returns
    -------
    BenchmarkResult
        avg/min/max in milliseconds and the number of samples taken.

    Raises
    ------
    ValueError
        If `iterations` is less than 1.
    Exception
        Whatever `operation` raises; the measurement is abandoned.
    """
    if iterations < 1:
        raise ValueError(f"iterations must be >= 1, got {iterations}")

    samples: List[float] = []
    for _ in range(iterations):
        start = clock()
        await operation()
        samples.append(max(clock() - start, 0.0) * 1000.0)

    result = BenchmarkResult.from_samples(name, samples)
    log.debug(
        f"[MEASURE] {name}: avg={result.avg_ms:.3f}ms over {result.iterations} iterations",
        extra={"strategy": name, "iterations": result.iterations, "avg_ms": result.avg_ms},
    )
    return result


async def warm_up(operation: Operation, iterations: int) -> None:
    """Invoke `operation` `iterations` times without recording anything."""
    for _ in range(iterations):
        await operation()


__all__ = ["Clock", "measure", "warm_up"]
