"""
Comparative runner: drive a fixed, ordered list of lookup strategies through
the benchmark harness and compare each against a baseline.

Usage:
    from lookup_bench.runner import RunConfig, run_comparison

    report = await run_comparison(strategies, RunConfig(baseline="asyncpg - B-tree"))
    for name, pct in report.overheads():
        print(name, format_overhead(pct))

Every strategy finishes its warmup and measurement before the next one starts.
Results are kept in declaration order; that order is the report order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from lookup_bench.config import get_settings
from lookup_bench.domain.models import BenchmarkResult
from lookup_bench.harness import measure, warm_up
from lookup_bench.strategies.abstract import LookupStrategy
from lookup_bench.utils.logging import get_logger

log = get_logger(__name__)

FailurePolicy = Literal["strict", "tolerant"]


@dataclass(frozen=True)
class RunConfig:
    """
    Parameters of one comparative run.

    Attributes
    ----------
    baseline : str | None
        Name of the strategy every other one is compared against.
    iterations : int | None
        Measured iterations per strategy. Defaults to settings.benchmark_iterations.
    warmup_iterations : int | None
        Untimed iterations per strategy. Defaults to settings.benchmark_warmup_iterations.
    expensive_iteration_cap : int | None
        Upper bound on measured iterations for strategies flagged `expensive`.
    failure_policy : "strict" | "tolerant"
        "strict" lets the first failure abort the run; "tolerant" records it
        and moves on to the next strategy.
    """

    baseline: Optional[str] = None
    iterations: Optional[int] = None
    warmup_iterations: Optional[int] = None
    expensive_iteration_cap: Optional[int] = None
    failure_policy: FailurePolicy = "strict"

    def resolved(self) -> "RunConfig":
        """Fill unset fields from settings."""
        settings = get_settings()
        return RunConfig(
            baseline=self.baseline,
            iterations=(
                self.iterations if self.iterations is not None else settings.benchmark_iterations
            ),
            warmup_iterations=(
                self.warmup_iterations
                if self.warmup_iterations is not None
                else settings.benchmark_warmup_iterations
            ),
            expensive_iteration_cap=(
                self.expensive_iteration_cap
                if self.expensive_iteration_cap is not None
                else settings.benchmark_expensive_iteration_cap
            ),
            failure_policy=self.failure_policy,
        )


@dataclass
class ComparisonReport:
    """Ordered results of one run plus any strategies that failed under the tolerant policy."""

    results: List[BenchmarkResult] = field(default_factory=list)
    order: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    baseline: Optional[str] = None

    def get(self, name: str) -> Optional[BenchmarkResult]:
        for result in self.results:
            if result.method == name:
                return result
        return None

    def overheads(self) -> List[Tuple[str, float]]:
        """
        Signed percentage overhead of each measured strategy against the baseline.

        Strategies with no result are skipped. An absent baseline, or one with a
        zero average, produces an empty list.
        """
        if self.baseline is None:
            return []
        base = self.get(self.baseline)
        if base is None:
            log.warning(
                f"Baseline '{self.baseline}' has no result; skipping relative comparison",
                extra={"baseline": self.baseline},
            )
            return []
        if base.avg_ms <= 0:
            log.warning(
                f"Baseline '{self.baseline}' averaged 0ms; skipping relative comparison",
                extra={"baseline": self.baseline},
            )
            return []

        return [
            (result.method, overhead_percent(base.avg_ms, result.avg_ms))
            for result in self.results
            if result.method != self.baseline
        ]


def overhead_percent(baseline_avg: float, avg: float) -> float:
    """(avg - baseline_avg) / baseline_avg * 100."""
    return (avg - baseline_avg) / baseline_avg * 100


def format_overhead(pct: float) -> str:
    """Render an overhead percentage with an explicit sign, e.g. '+50.0%'."""
    return f"{pct:+.1f}%"


def iterations_for(strategy: LookupStrategy, config: RunConfig) -> int:
    """Measured iteration count for a strategy, applying the expensive-strategy cap."""
    if config.iterations is None or config.expensive_iteration_cap is None:
        config = config.resolved()
    if strategy.expensive:
        return min(config.iterations, config.expensive_iteration_cap)
    return config.iterations


def _check_unique(strategies: Sequence[LookupStrategy]) -> None:
    seen: set[str] = set()
    for strategy in strategies:
        if strategy.name in seen:
            raise ValueError(f"Duplicate strategy name '{strategy.name}'")
        seen.add(strategy.name)


async def run_comparison(
    strategies: Sequence[LookupStrategy],
    config: Optional[RunConfig] = None,
) -> ComparisonReport:
    """
    Warm up and measure each strategy in order.

    Parameters
    ----------
    strategies : Sequence[LookupStrategy]
        Strategies in report order.
    config : RunConfig | None
        Run parameters; unset fields come from settings.

    Returns
    -------
    ComparisonReport
        Results in declaration order.

    Raises
    ------
    ValueError
        If two strategies share a name.
    Exception
        Under the strict policy, the first warmup/measurement failure.
    """
    cfg = (config or RunConfig()).resolved()
    _check_unique(strategies)

    report = ComparisonReport(baseline=cfg.baseline, order=[s.name for s in strategies])
    total = len(strategies)

    for position, strategy in enumerate(strategies, start=1):
        iterations = iterations_for(strategy, cfg)
        log.info(
            f"[STRATEGY {position}/{total}] {strategy.name}",
            extra={"strategy": strategy.name, "iterations": iterations},
        )
        try:
            log.debug(
                f"[WARMUP] {strategy.name} x{cfg.warmup_iterations}",
                extra={"strategy": strategy.name},
            )
            await warm_up(strategy.operation, cfg.warmup_iterations or 0)
            result = await measure(strategy.name, strategy.operation, iterations)
        except Exception as exc:  # noqa: BLE001 - policy decides whether to re-raise
            if cfg.failure_policy == "strict":
                log.error(
                    f"[STRATEGY FAILED] {strategy.name}; aborting comparison",
                    extra={"strategy": strategy.name, "error": str(exc)},
                )
                raise
            log.exception(
                f"[STRATEGY FAILED] {strategy.name}; continuing (tolerant)",
                extra={"strategy": strategy.name},
            )
            report.failures[strategy.name] = f"{type(exc).__name__}: {exc}"
            continue

        report.results.append(result)
        log.info(
            f"[STRATEGY COMPLETE] {strategy.name} avg={result.avg_ms:.3f}ms "
            f"min={result.min_ms:.3f}ms max={result.max_ms:.3f}ms",
            extra={
                "strategy": strategy.name,
                "avg_ms": result.avg_ms,
                "min_ms": result.min_ms,
                "max_ms": result.max_ms,
                "iterations": result.iterations,
            },
        )

    return report


__all__ = [
    "FailurePolicy",
    "RunConfig",
    "ComparisonReport",
    "overhead_percent",
    "format_overhead",
    "iterations_for",
    "run_comparison",
]
