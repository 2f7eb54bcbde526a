"""
PostgreSQL lookup strategies.

Nine strategies cover three indexes (B-tree, hash, none) through three client
layers:

- asyncpg: prepared statement through the thin driver.
- SQLAlchemy Raw: the same SQL through the ORM's connection layer (`text()`).
- SQLAlchemy ORM: `select(HashRecord).where(...).limit(1)` via a session.

Unindexed lookups scan the whole table, so they are flagged `expensive` and
their raw variants stop at the first match (`LIMIT 1`).
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import asyncpg
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from lookup_bench.domain.models import LookupKeySet, TableStats
from lookup_bench.errors import SetupError
from lookup_bench.infrastructure.orm import TABLE_NAME, HashRecord
from lookup_bench.strategies.abstract import LookupStrategy, Operation, PlanProbe

BASELINE = "asyncpg - B-tree"

# dimension -> (column, report label)
DIMENSIONS: Dict[str, Tuple[str, str]] = {
    "btree": ("hash_btree", "B-tree"),
    "hash": ("hash_hash", "Hash"),
    "noindex": ("hash_noindex", "No Index"),
}

RANDOM_KEYS_SQL = (
    f"SELECT hash_btree, hash_hash, hash_noindex FROM {TABLE_NAME} ORDER BY random() LIMIT 1"
)


def lookup_sql(column: str, limit_one: bool = False, placeholder: str = "$1") -> str:
    sql = f"SELECT * FROM {TABLE_NAME} WHERE {column} = {placeholder}"
    return f"{sql} LIMIT 1" if limit_one else sql


async def fetch_lookup_keys(conn: asyncpg.Connection) -> LookupKeySet:
    """
    Draw one random existing row and use its hashes as the run's lookup keys.

    Raises
    ------
    SetupError
        If the table is empty.
    """
    row = await conn.fetchrow(RANDOM_KEYS_SQL)
    if row is None:
        raise SetupError(f"{TABLE_NAME} is empty; run `lookup-bench seed-postgres` first")
    return LookupKeySet(keys={dim: row[column] for dim, (column, _) in DIMENSIONS.items()})


async def fetch_table_stats(conn: asyncpg.Connection) -> TableStats:
    """Row count, total relation size, and per-index size from the catalog."""
    row_count = await conn.fetchval(f"SELECT COUNT(*) FROM {TABLE_NAME}")
    total_size = await conn.fetchval(
        "SELECT pg_size_pretty(pg_total_relation_size($1::text::regclass))", TABLE_NAME
    )
    index_rows = await conn.fetch(
        """
        SELECT indexname, pg_size_pretty(pg_relation_size(indexname::regclass)) AS size
        FROM pg_indexes WHERE tablename = $1 ORDER BY indexname
        """,
        TABLE_NAME,
    )
    return TableStats(
        table=TABLE_NAME,
        row_count=row_count,
        total_size=total_size,
        index_sizes={r["indexname"]: r["size"] for r in index_rows},
    )


def _driver_lookup(conn: asyncpg.Connection, sql: str, value: str) -> Operation:
    async def run() -> List[Any]:
        return await conn.fetch(sql, value)

    return run


def _raw_lookup(engine: AsyncEngine, sql: str, value: str) -> Operation:
    statement = text(sql)

    async def run() -> List[Any]:
        async with engine.connect() as conn:
            result = await conn.execute(statement, {"value": value})
            return result.all()

    return run


def _orm_lookup(session_factory: async_sessionmaker, column: str, value: str) -> Operation:
    statement = select(HashRecord).where(getattr(HashRecord, column) == value).limit(1)

    async def run() -> Any:
        async with session_factory() as session:
            result = await session.execute(statement)
            return result.scalars().first()

    return run


def build_postgres_strategies(
    driver: asyncpg.Connection,
    engine: AsyncEngine,
    session_factory: async_sessionmaker,
    keys: LookupKeySet,
) -> List[LookupStrategy]:
    """Strategies in report order; every one looks up a key from `keys`."""

    def driver_strategy(dim: str) -> LookupStrategy:
        column, label = DIMENSIONS[dim]
        expensive = dim == "noindex"
        return LookupStrategy(
            name=f"asyncpg - {label}",
            operation=_driver_lookup(driver, lookup_sql(column, limit_one=expensive), keys[dim]),
            expensive=expensive,
            description=f"asyncpg prepared lookup on {column}",
        )

    def raw_strategy(dim: str) -> LookupStrategy:
        column, label = DIMENSIONS[dim]
        expensive = dim == "noindex"
        sql = lookup_sql(column, limit_one=expensive, placeholder=":value")
        return LookupStrategy(
            name=f"SQLAlchemy Raw - {label}",
            operation=_raw_lookup(engine, sql, keys[dim]),
            expensive=expensive,
            description=f"SQLAlchemy text() lookup on {column}",
        )

    def orm_strategy(dim: str) -> LookupStrategy:
        column, label = DIMENSIONS[dim]
        return LookupStrategy(
            name=f"SQLAlchemy ORM - {label}",
            operation=_orm_lookup(session_factory, column, keys[dim]),
            expensive=dim == "noindex",
            description=f"SQLAlchemy ORM first-match on {column}",
        )

    return [
        raw_strategy("btree"),
        raw_strategy("hash"),
        driver_strategy("btree"),
        driver_strategy("hash"),
        orm_strategy("btree"),
        orm_strategy("hash"),
        driver_strategy("noindex"),
        raw_strategy("noindex"),
        orm_strategy("noindex"),
    ]


def _explain(conn: asyncpg.Connection, dim: str, value: str) -> PlanProbe:
    column, label = DIMENSIONS[dim]

    async def run() -> List[str]:
        rows = await conn.fetch(f"EXPLAIN ANALYZE {lookup_sql(column)}", value)
        return [row[0] for row in rows]

    return PlanProbe(label=f"{label} ({column})", run=run)


def explain_probes(conn: asyncpg.Connection, keys: LookupKeySet) -> List[PlanProbe]:
    """EXPLAIN ANALYZE one lookup per dimension."""
    return [_explain(conn, dim, keys[dim]) for dim in DIMENSIONS]


__all__ = [
    "BASELINE",
    "DIMENSIONS",
    "RANDOM_KEYS_SQL",
    "lookup_sql",
    "fetch_lookup_keys",
    "fetch_table_stats",
    "build_postgres_strategies",
    "explain_probes",
]
