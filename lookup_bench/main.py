from __future__ import annotations

import asyncio
import sys

import typer

from lookup_bench.config import get_settings
from lookup_bench.suites import (
    run_opensearch_benchmark,
    run_postgres_benchmark,
    seed_opensearch,
    seed_postgres,
)
from lookup_bench.utils.logging import configure_logging

app = typer.Typer(help="Hash key lookup benchmark for PostgreSQL and OpenSearch.")


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"OpenSearch={settings.opensearch_url}/{settings.opensearch_index}"
    )
    typer.echo(
        f"seed: records={settings.seed_total_records} pg_batch={settings.seed_pg_batch_size} "
        f"os_batch={settings.seed_opensearch_batch_size} retries={settings.seed_max_retries} "
        f"backoff={settings.seed_retry_backoff_seconds}s"
    )
    typer.echo(
        f"benchmark: iterations={settings.benchmark_iterations} "
        f"warmup={settings.benchmark_warmup_iterations} "
        f"expensive_cap={settings.benchmark_expensive_iteration_cap}"
    )


@app.command("seed-postgres")
def seed_postgres_cmd() -> None:
    """
    Recreate the hash_records table and load the synthetic corpus.
    """
    _setup()
    report, _ = asyncio.run(seed_postgres())
    if report.aborted:
        raise typer.Exit(code=1)


@app.command("seed-opensearch")
def seed_opensearch_cmd() -> None:
    """
    Recreate the OpenSearch index and bulk-index the synthetic corpus.
    """
    _setup()
    report, _ = asyncio.run(seed_opensearch())
    if report.aborted:
        raise typer.Exit(code=1)


@app.command("bench-postgres")
def bench_postgres_cmd() -> None:
    """
    Benchmark the PostgreSQL lookup strategies against the seeded table.
    """
    _setup()
    asyncio.run(run_postgres_benchmark())


@app.command("bench-opensearch")
def bench_opensearch_cmd() -> None:
    """
    Benchmark the OpenSearch query strategies against the seeded index.
    """
    _setup()
    asyncio.run(run_opensearch_benchmark())


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
