"""
Pytest configuration for the hash lookup benchmark.

Provides fixtures for:
- Settings override for integration tests
- Backend reachability checks (PostgreSQL, OpenSearch)
- Small, fast settings for unit tests that exercise suites and loaders
"""

from __future__ import annotations

import os

import psycopg
import pytest
from opensearchpy import OpenSearch

from lookup_bench.config import Settings


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "benchmark"),
        db_password=os.getenv("DB_PASSWORD", "benchmark123"),
        db_name=os.getenv("DB_NAME", "hash_test"),
        opensearch_url=os.getenv("OPENSEARCH_URL", "http://localhost:9200"),
        opensearch_index=os.getenv("OPENSEARCH_INDEX", "hash_records_test"),
        seed_total_records=250,
        seed_pg_batch_size=100,
        seed_opensearch_batch_size=100,
        seed_progress_every=100,
        seed_max_retries=2,
        seed_retry_backoff_seconds=0.1,
        benchmark_iterations=5,
        benchmark_warmup_iterations=1,
        benchmark_expensive_iteration_cap=2,
        log_level="DEBUG",
    )


@pytest.fixture
def fast_settings() -> Settings:
    """Tiny seed/benchmark parameters for unit tests that run whole suites on fakes."""
    return Settings(
        seed_total_records=30,
        seed_pg_batch_size=10,
        seed_opensearch_batch_size=10,
        seed_progress_every=10,
        seed_max_retries=3,
        seed_retry_backoff_seconds=0.0,
        benchmark_iterations=3,
        benchmark_warmup_iterations=1,
        benchmark_expensive_iteration_cap=2,
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except Exception:
        return False


@pytest.fixture(scope="session")
def opensearch_available(test_settings: Settings) -> bool:
    """
    Check if the OpenSearch cluster answers a ping.
    """
    client = OpenSearch(hosts=[test_settings.opensearch_url], timeout=5)
    try:
        return bool(client.ping())
    except Exception:
        return False
    finally:
        client.close()
