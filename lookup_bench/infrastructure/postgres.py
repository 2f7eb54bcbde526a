"""
PostgreSQL connectivity for the hash lookup benchmark.

Three client layers talk to the same database:

- asyncpg: the thin driver measured directly, also used for key sampling,
  catalog statistics, and EXPLAIN output.
- SQLAlchemy (async, psycopg dialect): the ORM layer and raw SQL through it.
- psycopg AsyncConnection: the bulk loader's connection.

Connection establishment retries transient failures with tenacity. Every
factory returns an owned handle; callers close it.
"""

from __future__ import annotations

import json
from typing import Optional, Sequence, Tuple, Type

import asyncpg
import psycopg
from psycopg import AsyncConnection
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from lookup_bench.config import Settings, get_settings
from lookup_bench.domain.models import SeedRecord
from lookup_bench.infrastructure.orm import TABLE_NAME
from lookup_bench.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_STATEMENTS: Tuple[str, ...] = (
    f"DROP TABLE IF EXISTS {TABLE_NAME}",
    f"""
    CREATE TABLE {TABLE_NAME} (
        id BIGSERIAL PRIMARY KEY,
        hash_btree VARCHAR(64) NOT NULL,
        hash_hash VARCHAR(64) NOT NULL,
        hash_noindex VARCHAR(64) NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        status INTEGER NOT NULL DEFAULT 0,
        metadata JSONB NOT NULL DEFAULT '{{}}'::jsonb
    )
    """,
    f"CREATE INDEX {TABLE_NAME}_hash_btree_idx ON {TABLE_NAME} USING btree (hash_btree)",
    f"CREATE INDEX {TABLE_NAME}_hash_hash_idx ON {TABLE_NAME} USING hash (hash_hash)",
)

# One statement per batch; arrays keep the parameter count fixed at four.
BULK_INSERT_SQL = f"""
    INSERT INTO {TABLE_NAME} (hash_btree, hash_hash, hash_noindex, created_at, status, metadata)
    SELECT t.hash, t.hash, t.hash, t.created_at, t.status, t.metadata::jsonb
    FROM unnest(%s::text[], %s::timestamptz[], %s::int[], %s::text[])
        AS t(hash, created_at, status, metadata)
"""


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a libpq DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def build_sqlalchemy_url(settings: Optional[Settings] = None) -> str:
    """SQLAlchemy URL selecting the async psycopg dialect."""
    return build_dsn(settings).replace("postgresql://", "postgresql+psycopg://", 1)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(
        (OSError, ConnectionError, asyncpg.CannotConnectNowError, asyncpg.PostgresConnectionError)
    ),
    reraise=True,
)
async def connect_driver(dsn: Optional[str] = None) -> asyncpg.Connection:
    """
    Open a dedicated asyncpg connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Returns
    -------
    asyncpg.Connection
        A new connection; the caller closes it.
    """
    return await asyncpg.connect(dsn or build_dsn())


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError, OSError)),
    reraise=True,
)
async def connect_loader(dsn: Optional[str] = None) -> AsyncConnection:
    """
    Open a psycopg async connection for bulk writes, with automatic retry.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return await AsyncConnection.connect(dsn or build_dsn())


def create_orm_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Create the async SQLAlchemy engine used by the raw-SQL and ORM strategies.

    The caller disposes it (`await engine.dispose()`).
    """
    settings = settings or get_settings()
    return create_async_engine(
        build_sqlalchemy_url(settings),
        pool_size=settings.orm_pool_size,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


class PostgresBulkWriter:
    """
    Loader backend writing `hash_records` rows over a psycopg async connection.

    Each batch is one multi-row INSERT committed on its own, so a failed batch
    leaves no partial rows behind.
    """

    name: str = "postgres"
    transient_errors: Tuple[Type[BaseException], ...] = (
        psycopg.OperationalError,
        psycopg.InterfaceError,
        OSError,
    )

    def __init__(self, dsn: Optional[str] = None) -> None:
        self._dsn = dsn or build_dsn()
        self._conn: Optional[AsyncConnection] = None

    @property
    def conn(self) -> AsyncConnection:
        if self._conn is None:
            raise RuntimeError("PostgresBulkWriter is not connected")
        return self._conn

    async def connect(self) -> None:
        self._conn = await connect_loader(self._dsn)

    async def close(self) -> None:
        if self._conn is not None:
            try:
                await self._conn.close()
            finally:
                self._conn = None

    async def reconnect(self) -> None:
        log.info("[RECONNECT] postgres", extra={"writer": self.name})
        await self.close()
        await self.connect()

    async def prepare(self) -> None:
        log.info(f"[PREPARE] Recreating table {TABLE_NAME}", extra={"table": TABLE_NAME})
        async with self.conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                await cur.execute(statement)
        await self.conn.commit()

    async def write_batch(self, records: Sequence[SeedRecord]) -> None:
        params = (
            [r.hash for r in records],
            [r.created_at for r in records],
            [r.status for r in records],
            [json.dumps(r.metadata) for r in records],
        )
        async with self.conn.cursor() as cur:
            await cur.execute(BULK_INSERT_SQL, params)
        await self.conn.commit()

    async def finalize(self) -> None:
        log.info(f"[FINALIZE] ANALYZE {TABLE_NAME}", extra={"table": TABLE_NAME})
        async with self.conn.cursor() as cur:
            await cur.execute(f"ANALYZE {TABLE_NAME}")
        await self.conn.commit()

    async def __aenter__(self) -> "PostgresBulkWriter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


__all__ = [
    "SCHEMA_STATEMENTS",
    "BULK_INSERT_SQL",
    "build_dsn",
    "build_sqlalchemy_url",
    "connect_driver",
    "connect_loader",
    "create_orm_engine",
    "create_session_factory",
    "PostgresBulkWriter",
]
