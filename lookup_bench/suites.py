"""
End-to-end suites behind the CLI commands.

Each benchmark suite opens its own clients, prints dataset statistics, draws
lookup keys from the live data, runs the comparison, renders results, collects
plans/profiles, and closes every client it opened. Each seed suite runs the
batch loader against one backend inside a resource monitor.
"""

from __future__ import annotations

from typing import Optional, Tuple

from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncEngine

from lookup_bench.config import Settings, get_settings
from lookup_bench.domain.models import LoadReport
from lookup_bench.infrastructure.opensearch import OpenSearchBulkWriter, build_client
from lookup_bench.infrastructure.postgres import (
    PostgresBulkWriter,
    build_dsn,
    connect_driver,
    create_orm_engine,
    create_session_factory,
)
from lookup_bench.loader import BatchLoader, BulkWriter
from lookup_bench.plans import collect_plans
from lookup_bench.reporter import (
    print_index_stats,
    print_load_report,
    print_lookup_keys,
    print_overheads,
    print_plans,
    print_results,
    print_table_stats,
)
from lookup_bench.runner import ComparisonReport, RunConfig, run_comparison
from lookup_bench.strategies import opensearch as os_strategies
from lookup_bench.strategies import postgres as pg_strategies
from lookup_bench.utils.logging import get_logger
from lookup_bench.utils.profiler import ResourceStats, resource_monitor

log = get_logger(__name__)


def _run_config(settings: Settings, baseline: str) -> RunConfig:
    return RunConfig(
        baseline=baseline,
        iterations=settings.benchmark_iterations,
        warmup_iterations=settings.benchmark_warmup_iterations,
        expensive_iteration_cap=settings.benchmark_expensive_iteration_cap,
    )


async def run_postgres_benchmark(
    settings: Optional[Settings] = None, console: Optional[Console] = None
) -> ComparisonReport:
    """
    Compare the nine PostgreSQL lookup strategies against `asyncpg - B-tree`.

    Raises
    ------
    SetupError
        If `hash_records` holds no rows.
    """
    settings = settings or get_settings()
    console = console or Console()

    driver = await connect_driver(build_dsn(settings))
    engine: Optional[AsyncEngine] = None
    try:
        engine = create_orm_engine(settings)
        print_table_stats(await pg_strategies.fetch_table_stats(driver), console=console)

        keys = await pg_strategies.fetch_lookup_keys(driver)
        print_lookup_keys(keys, console=console)

        strategies = pg_strategies.build_postgres_strategies(
            driver, engine, create_session_factory(engine), keys
        )
        log.info(
            f"[SUITE START] postgres: {len(strategies)} strategies",
            extra={"suite": "postgres", "strategies": len(strategies)},
        )
        report = await run_comparison(strategies, _run_config(settings, pg_strategies.BASELINE))

        print_results(report, title="PostgreSQL Lookup Benchmark", console=console)
        print_overheads(report, console=console)
        print_plans(await collect_plans(pg_strategies.explain_probes(driver, keys)), console=console)
        return report
    finally:
        try:
            await driver.close()
        finally:
            if engine is not None:
                await engine.dispose()


async def run_opensearch_benchmark(
    settings: Optional[Settings] = None, console: Optional[Console] = None
) -> ComparisonReport:
    """
    Compare the five OpenSearch query strategies against `keyword + term`.

    Raises
    ------
    SetupError
        If the index holds no documents.
    """
    settings = settings or get_settings()
    console = console or Console()
    index = settings.opensearch_index

    client = build_client(settings)
    try:
        print_index_stats(await os_strategies.fetch_index_stats(client, index), console=console)

        keys = await os_strategies.fetch_lookup_keys(client, index)
        print_lookup_keys(keys, console=console)

        strategies = os_strategies.build_opensearch_strategies(client, index, keys)
        log.info(
            f"[SUITE START] opensearch: {len(strategies)} strategies",
            extra={"suite": "opensearch", "strategies": len(strategies)},
        )
        report = await run_comparison(strategies, _run_config(settings, os_strategies.BASELINE))

        print_results(report, title="OpenSearch Lookup Benchmark", console=console)
        print_overheads(report, console=console)
        print_plans(
            await collect_plans(os_strategies.profile_probes(client, index, keys)),
            console=console,
        )
        return report
    finally:
        await client.close()


async def _seed(
    writer: BulkWriter,
    settings: Settings,
    batch_size: int,
    console: Console,
) -> Tuple[LoadReport, ResourceStats]:
    loader = BatchLoader(
        writer,
        max_retries=settings.seed_max_retries,
        backoff_seconds=settings.seed_retry_backoff_seconds,
        progress_every=settings.seed_progress_every,
    )
    with resource_monitor(f"seed-{writer.name}") as stats:
        report = await loader.load(settings.seed_total_records, batch_size)
    print_load_report(report, stats, console=console)
    return report, stats


async def seed_postgres(
    settings: Optional[Settings] = None, console: Optional[Console] = None
) -> Tuple[LoadReport, ResourceStats]:
    """Recreate `hash_records` and load the synthetic corpus into it."""
    settings = settings or get_settings()
    async with PostgresBulkWriter(build_dsn(settings)) as writer:
        return await _seed(writer, settings, settings.seed_pg_batch_size, console or Console())


async def seed_opensearch(
    settings: Optional[Settings] = None, console: Optional[Console] = None
) -> Tuple[LoadReport, ResourceStats]:
    """Recreate the index and bulk-index the synthetic corpus into it."""
    settings = settings or get_settings()
    async with OpenSearchBulkWriter(settings) as writer:
        return await _seed(
            writer,
            settings,
            settings.seed_opensearch_batch_size,
            console or Console(),
        )


__all__ = [
    "run_postgres_benchmark",
    "run_opensearch_benchmark",
    "seed_postgres",
    "seed_opensearch",
]
