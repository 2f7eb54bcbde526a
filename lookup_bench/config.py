"""
Configuration settings for the hash lookup benchmark.

Uses Pydantic Settings to load environment variables for the PostgreSQL and
OpenSearch connections, logging, seeding, and benchmark defaults. Every entry
point is flag-less, so these values are the only knobs a run has.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("benchmark", alias="DB_USER")
    db_password: str = Field("benchmark123", alias="DB_PASSWORD")
    db_name: str = Field("hash_test", alias="DB_NAME")
    orm_pool_size: int = Field(5, alias="ORM_POOL_SIZE")

    # OpenSearch
    opensearch_url: str = Field("http://localhost:9200", alias="OPENSEARCH_URL")
    opensearch_index: str = Field("hash_records", alias="OPENSEARCH_INDEX")
    opensearch_timeout: int = Field(60, alias="OPENSEARCH_TIMEOUT")
    opensearch_refresh_interval: str = Field("1s", alias="OPENSEARCH_REFRESH_INTERVAL")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Seeding
    seed_total_records: int = Field(10_000_000, alias="SEED_TOTAL_RECORDS")
    seed_pg_batch_size: int = Field(50_000, alias="SEED_PG_BATCH_SIZE")
    seed_opensearch_batch_size: int = Field(5_000, alias="SEED_OPENSEARCH_BATCH_SIZE")
    seed_progress_every: int = Field(100_000, alias="SEED_PROGRESS_EVERY")
    seed_max_retries: int = Field(5, alias="SEED_MAX_RETRIES")
    seed_retry_backoff_seconds: float = Field(3.0, alias="SEED_RETRY_BACKOFF_SECONDS")

    # Benchmark defaults
    benchmark_iterations: int = Field(100, alias="BENCHMARK_ITERATIONS")
    benchmark_warmup_iterations: int = Field(10, alias="BENCHMARK_WARMUP_ITERATIONS")
    benchmark_expensive_iteration_cap: int = Field(
        10, alias="BENCHMARK_EXPENSIVE_ITERATION_CAP"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
