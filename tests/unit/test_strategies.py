from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest

from lookup_bench.domain.models import LookupKeySet
from lookup_bench.errors import SetupError
from lookup_bench.strategies import opensearch as os_strategies
from lookup_bench.strategies import postgres as pg_strategies

KEY = "ab" * 32
INDEX = "hash_records"

EXPECTED_PG_ORDER = [
    "SQLAlchemy Raw - B-tree",
    "SQLAlchemy Raw - Hash",
    "asyncpg - B-tree",
    "asyncpg - Hash",
    "SQLAlchemy ORM - B-tree",
    "SQLAlchemy ORM - Hash",
    "asyncpg - No Index",
    "SQLAlchemy Raw - No Index",
    "SQLAlchemy ORM - No Index",
]

EXPECTED_OS_ORDER = [
    "keyword + term",
    "keyword + bool filter",
    "text + match",
    "text + match_phrase",
    "text + bool filter match",
]


class _FakeDriver:
    """Stands in for an asyncpg connection."""

    def __init__(
        self,
        row: Optional[Dict[str, Any]] = None,
        rows: Optional[List[Any]] = None,
        values: Optional[List[Any]] = None,
    ) -> None:
        self._row = row
        self._rows = rows or []
        self._values = list(values or [])
        self.queries: List[Tuple[str, Tuple[Any, ...]]] = []

    async def fetchrow(self, sql: str, *args: Any) -> Optional[Dict[str, Any]]:
        self.queries.append((sql, args))
        return self._row

    async def fetch(self, sql: str, *args: Any) -> List[Any]:
        self.queries.append((sql, args))
        return self._rows

    async def fetchval(self, sql: str, *args: Any) -> Any:
        self.queries.append((sql, args))
        return self._values.pop(0)


class _FakeIndices:
    async def stats(self, index: str) -> Dict[str, Any]:
        return {
            "indices": {
                index: {
                    "primaries": {
                        "docs": {"count": 42},
                        "store": {"size_in_bytes": 2 * 1024 * 1024},
                    }
                }
            }
        }

    async def get_mapping(self, index: str) -> Dict[str, Any]:
        return {
            index: {
                "mappings": {
                    "properties": {
                        "hash_keyword": {"type": "keyword"},
                        "hash_text": {"type": "text"},
                        "metadata": {"enabled": False},
                    }
                }
            }
        }


class _FakeSearchClient:
    def __init__(self, hits: Optional[List[Dict[str, Any]]] = None) -> None:
        self._hits = hits if hits is not None else [
            {"_source": {"hash_keyword": KEY, "hash_text": KEY}}
        ]
        self.indices = _FakeIndices()
        self.searches: List[Tuple[str, Dict[str, Any]]] = []

    async def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self.searches.append((index, body))
        if body.get("profile"):
            return _profile_response(123_456, "TermQuery")
        return {"hits": {"hits": self._hits}}


def _profile_response(nanos: int, query_type: str) -> Dict[str, Any]:
    return {
        "hits": {"hits": []},
        "profile": {
            "shards": [
                {"searches": [{"query": [{"type": query_type, "time_in_nanos": nanos}]}]}
            ]
        },
    }


def _pg_keys() -> LookupKeySet:
    return LookupKeySet(keys={"btree": KEY, "hash": KEY, "noindex": KEY})


def _os_keys() -> LookupKeySet:
    return LookupKeySet(keys={"keyword": KEY, "text": KEY})


# ---------------------------------------------------------------------------
# PostgreSQL
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_pg_lookup_keys_from_random_row() -> None:
    driver = _FakeDriver(row={"hash_btree": KEY, "hash_hash": KEY, "hash_noindex": KEY})
    keys = await pg_strategies.fetch_lookup_keys(driver)
    assert keys.dimensions() == ["btree", "hash", "noindex"]
    assert keys["noindex"] == KEY
    assert "ORDER BY random()" in driver.queries[0][0]


@pytest.mark.asyncio
async def test_pg_empty_table_is_setup_error() -> None:
    with pytest.raises(SetupError):
        await pg_strategies.fetch_lookup_keys(_FakeDriver(row=None))


def test_pg_catalogue_order_and_flags() -> None:
    strategies = pg_strategies.build_postgres_strategies(_FakeDriver(), None, None, _pg_keys())
    assert [s.name for s in strategies] == EXPECTED_PG_ORDER
    assert pg_strategies.BASELINE in EXPECTED_PG_ORDER
    assert [s.name for s in strategies if s.expensive] == EXPECTED_PG_ORDER[-3:]


def test_lookup_sql_limits_only_when_asked() -> None:
    assert pg_strategies.lookup_sql("hash_btree") == (
        "SELECT * FROM hash_records WHERE hash_btree = $1"
    )
    assert pg_strategies.lookup_sql("hash_noindex", limit_one=True).endswith("LIMIT 1")
    assert ":value" in pg_strategies.lookup_sql("hash_hash", placeholder=":value")


@pytest.mark.asyncio
async def test_pg_driver_operations_use_their_column() -> None:
    driver = _FakeDriver(rows=[{"id": 1}])
    strategies = {
        s.name: s
        for s in pg_strategies.build_postgres_strategies(driver, None, None, _pg_keys())
    }

    await strategies["asyncpg - Hash"].operation()
    await strategies["asyncpg - No Index"].operation()

    hash_sql, hash_args = driver.queries[0]
    scan_sql, _ = driver.queries[1]
    assert "hash_hash = $1" in hash_sql and "LIMIT" not in hash_sql
    assert hash_args == (KEY,)
    assert "hash_noindex = $1 LIMIT 1" in scan_sql


@pytest.mark.asyncio
async def test_pg_table_stats() -> None:
    driver = _FakeDriver(
        rows=[
            {"indexname": "hash_records_hash_btree_idx", "size": "3 MB"},
            {"indexname": "hash_records_hash_hash_idx", "size": "4 MB"},
        ],
        values=[1000, "12 MB"],
    )
    stats = await pg_strategies.fetch_table_stats(driver)
    assert stats.row_count == 1000
    assert stats.total_size == "12 MB"
    assert stats.index_sizes["hash_records_hash_hash_idx"] == "4 MB"


@pytest.mark.asyncio
async def test_pg_explain_probes_per_dimension() -> None:
    driver = _FakeDriver(rows=[("Index Scan using hash_records_hash_btree_idx",), ("Planning Time: 0.1 ms",)])
    probes = pg_strategies.explain_probes(driver, _pg_keys())

    assert [p.label for p in probes] == [
        "B-tree (hash_btree)",
        "Hash (hash_hash)",
        "No Index (hash_noindex)",
    ]
    lines = await probes[0].run()
    assert lines[0].startswith("Index Scan")
    assert driver.queries[0][0].startswith("EXPLAIN ANALYZE SELECT")


# ---------------------------------------------------------------------------
# OpenSearch
# ---------------------------------------------------------------------------


def test_os_query_bodies() -> None:
    bodies = dict(os_strategies.query_bodies(_os_keys()))
    assert list(bodies) == EXPECTED_OS_ORDER
    assert bodies["keyword + term"] == {"query": {"term": {"hash_keyword": KEY}}}
    assert bodies["text + match_phrase"] == {"query": {"match_phrase": {"hash_text": KEY}}}
    assert bodies["keyword + bool filter"]["query"]["bool"]["filter"][0] == {
        "term": {"hash_keyword": KEY}
    }


@pytest.mark.asyncio
async def test_os_lookup_keys_from_random_document() -> None:
    client = _FakeSearchClient()
    keys = await os_strategies.fetch_lookup_keys(client, INDEX)
    assert keys["keyword"] == KEY
    assert keys["text"] == KEY
    assert "random_score" in client.searches[0][1]["query"]["function_score"]


@pytest.mark.asyncio
async def test_os_empty_index_is_setup_error() -> None:
    with pytest.raises(SetupError):
        await os_strategies.fetch_lookup_keys(_FakeSearchClient(hits=[]), INDEX)


@pytest.mark.asyncio
async def test_os_strategies_issue_their_body() -> None:
    client = _FakeSearchClient()
    strategies = os_strategies.build_opensearch_strategies(client, INDEX, _os_keys())
    assert [s.name for s in strategies] == EXPECTED_OS_ORDER
    assert not any(s.expensive for s in strategies)

    await strategies[2].operation()
    assert client.searches[-1] == (INDEX, {"query": {"match": {"hash_text": KEY}}})


@pytest.mark.asyncio
async def test_os_index_stats() -> None:
    stats = await os_strategies.fetch_index_stats(_FakeSearchClient(), INDEX)
    assert stats.doc_count == 42
    assert stats.size_mb == 2.0
    assert stats.field_types["hash_keyword"] == "keyword"
    assert stats.field_types["metadata"] == "object"


def test_parse_profile_reports_ms_and_type() -> None:
    lines = os_strategies.parse_profile(_profile_response(123_456, "TermQuery"))
    assert lines == ["Time: 0.1235ms", "Type: TermQuery"]


@pytest.mark.asyncio
async def test_os_profile_probes() -> None:
    client = _FakeSearchClient()
    probes = os_strategies.profile_probes(client, INDEX, _os_keys())
    assert [p.label for p in probes] == ["keyword + term", "text + match"]

    lines = await probes[1].run()
    assert lines[1] == "Type: TermQuery"
    assert client.searches[-1][1] == {"profile": True, "query": {"match": {"hash_text": KEY}}}
