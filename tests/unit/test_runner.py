from __future__ import annotations

from typing import List

import pytest

from lookup_bench.domain.models import BenchmarkResult
from lookup_bench.runner import (
    ComparisonReport,
    RunConfig,
    format_overhead,
    iterations_for,
    overhead_percent,
    run_comparison,
)
from lookup_bench.strategies.abstract import LookupStrategy

WARMUP = 2
ITERATIONS = 100
EXPENSIVE_CAP = 10


class _RecordingOperation:
    def __init__(self, name: str, log: List[str], fail: bool = False) -> None:
        self.name = name
        self.calls = 0
        self._log = log
        self._fail = fail

    async def __call__(self) -> str:
        self.calls += 1
        self._log.append(self.name)
        if self._fail:
            raise RuntimeError(f"{self.name} exploded")
        return self.name


def _config(**overrides) -> RunConfig:
    params = dict(
        iterations=ITERATIONS,
        warmup_iterations=WARMUP,
        expensive_iteration_cap=EXPENSIVE_CAP,
    )
    params.update(overrides)
    return RunConfig(**params)


def _result(name: str, avg: float) -> BenchmarkResult:
    return BenchmarkResult(method=name, avg_ms=avg, min_ms=avg, max_ms=avg, iterations=1)


@pytest.mark.asyncio
async def test_results_follow_declaration_order_and_run_one_at_a_time() -> None:
    calls: List[str] = []
    ops = [_RecordingOperation(name, calls) for name in ("c", "a", "b")]
    strategies = [LookupStrategy(name=op.name, operation=op) for op in ops]

    report = await run_comparison(strategies, _config(iterations=3, warmup_iterations=1))

    assert [r.method for r in report.results] == ["c", "a", "b"]
    assert report.order == ["c", "a", "b"]
    # each strategy finishes warmup + measurement before the next starts
    assert calls == ["c"] * 4 + ["a"] * 4 + ["b"] * 4


@pytest.mark.asyncio
async def test_warmup_calls_are_not_sampled() -> None:
    op = _RecordingOperation("probe", [])
    report = await run_comparison(
        [LookupStrategy(name="probe", operation=op)], _config(iterations=5)
    )
    assert op.calls == WARMUP + 5
    assert report.results[0].iterations == 5


@pytest.mark.asyncio
async def test_expensive_strategy_is_capped() -> None:
    cheap = _RecordingOperation("cheap", [])
    costly = _RecordingOperation("costly", [])
    strategies = [
        LookupStrategy(name="cheap", operation=cheap),
        LookupStrategy(name="costly", operation=costly, expensive=True),
    ]

    report = await run_comparison(strategies, _config())

    assert report.get("cheap").iterations == ITERATIONS
    assert report.get("costly").iterations == EXPENSIVE_CAP
    assert costly.calls == WARMUP + EXPENSIVE_CAP


def test_cap_never_raises_iterations() -> None:
    strategy = LookupStrategy(name="x", operation=_RecordingOperation("x", []), expensive=True)
    assert iterations_for(strategy, _config(iterations=3)) == 3


def test_overhead_is_signed_percentage() -> None:
    report = ComparisonReport(
        results=[_result("base", 2.0), _result("slow", 3.0), _result("fast", 1.0)],
        order=["base", "slow", "fast"],
        baseline="base",
    )
    overheads = dict(report.overheads())
    assert "base" not in overheads
    assert format_overhead(overheads["slow"]) == "+50.0%"
    assert format_overhead(overheads["fast"]) == "-50.0%"


def test_overhead_percent_formula() -> None:
    assert format_overhead(overhead_percent(10.0, 15.0)) == "+50.0%"
    assert format_overhead(overhead_percent(10.0, 5.0)) == "-50.0%"
    assert overhead_percent(4.0, 5.0) == pytest.approx(25.0)
    assert format_overhead(0.0) == "+0.0%"


def test_missing_baseline_skips_comparison() -> None:
    report = ComparisonReport(
        results=[_result("a", 1.0)], order=["a", "base"], baseline="base"
    )
    assert report.overheads() == []


def test_zero_baseline_skips_comparison() -> None:
    report = ComparisonReport(
        results=[_result("base", 0.0), _result("a", 1.0)], order=["base", "a"], baseline="base"
    )
    assert report.overheads() == []


def test_no_baseline_configured() -> None:
    report = ComparisonReport(results=[_result("a", 1.0)], order=["a"])
    assert report.overheads() == []


@pytest.mark.asyncio
async def test_strict_policy_aborts_on_first_failure() -> None:
    first = _RecordingOperation("ok", [])
    broken = _RecordingOperation("broken", [], fail=True)
    never = _RecordingOperation("never", [])
    strategies = [
        LookupStrategy(name="ok", operation=first),
        LookupStrategy(name="broken", operation=broken),
        LookupStrategy(name="never", operation=never),
    ]

    with pytest.raises(RuntimeError, match="broken exploded"):
        await run_comparison(strategies, _config(iterations=2))

    assert never.calls == 0


@pytest.mark.asyncio
async def test_tolerant_policy_records_failure_and_continues() -> None:
    broken = _RecordingOperation("broken", [], fail=True)
    after = _RecordingOperation("after", [])
    strategies = [
        LookupStrategy(name="broken", operation=broken),
        LookupStrategy(name="after", operation=after),
    ]

    report = await run_comparison(
        strategies, _config(iterations=2, failure_policy="tolerant", baseline="after")
    )

    assert report.get("broken") is None
    assert "broken exploded" in report.failures["broken"]
    assert report.get("after").iterations == 2
    assert report.order == ["broken", "after"]
    assert report.overheads() == []


@pytest.mark.asyncio
async def test_duplicate_names_are_rejected_before_running() -> None:
    op = _RecordingOperation("dup", [])
    strategies = [
        LookupStrategy(name="dup", operation=op),
        LookupStrategy(name="dup", operation=op),
    ]
    with pytest.raises(ValueError, match="Duplicate"):
        await run_comparison(strategies, _config())
    assert op.calls == 0


def test_run_config_resolves_defaults_from_settings() -> None:
    cfg = RunConfig(baseline="b").resolved()
    assert cfg.baseline == "b"
    assert cfg.iterations is not None and cfg.iterations >= 1
    assert cfg.warmup_iterations is not None
    assert cfg.expensive_iteration_cap is not None
    assert cfg.failure_policy == "strict"


def test_iterations_for_resolves_unset_config() -> None:
    strategy = LookupStrategy(name="x", operation=_RecordingOperation("x", []), expensive=True)
    cfg = RunConfig(iterations=ITERATIONS)
    expected = min(ITERATIONS, cfg.resolved().expensive_iteration_cap)
    assert iterations_for(strategy, cfg) == expected
