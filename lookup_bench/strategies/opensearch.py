"""
OpenSearch lookup strategies.

Compares exact matching on the `keyword` field (term query, and term inside a
cacheable bool filter) against analyzed matching on the `text` field (match,
match_phrase, and match inside a bool filter). Both fields hold the same hash,
so every strategy targets the same document.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from opensearchpy import AsyncOpenSearch

from lookup_bench.domain.models import IndexStats, LookupKeySet
from lookup_bench.errors import SetupError
from lookup_bench.infrastructure.opensearch import KEYWORD_FIELD, TEXT_FIELD
from lookup_bench.strategies.abstract import LookupStrategy, Operation, PlanProbe

BASELINE = "keyword + term"

RANDOM_DOC_QUERY: Dict[str, Any] = {
    "size": 1,
    "query": {
        "function_score": {
            "query": {"match_all": {}},
            "random_score": {},
        }
    },
}


def query_bodies(keys: LookupKeySet) -> List[Tuple[str, Dict[str, Any]]]:
    """(strategy name, search body) pairs in report order."""
    keyword = keys["keyword"]
    text = keys["text"]
    return [
        ("keyword + term", {"query": {"term": {KEYWORD_FIELD: keyword}}}),
        (
            "keyword + bool filter",
            {"query": {"bool": {"filter": [{"term": {KEYWORD_FIELD: keyword}}]}}},
        ),
        ("text + match", {"query": {"match": {TEXT_FIELD: text}}}),
        ("text + match_phrase", {"query": {"match_phrase": {TEXT_FIELD: text}}}),
        (
            "text + bool filter match",
            {"query": {"bool": {"filter": [{"match": {TEXT_FIELD: text}}]}}},
        ),
    ]


async def fetch_lookup_keys(client: AsyncOpenSearch, index: str) -> LookupKeySet:
    """
    Sample one random document and use its hashes as the run's lookup keys.

    Raises
    ------
    SetupError
        If the index holds no documents.
    """
    response = await client.search(index=index, body=RANDOM_DOC_QUERY)
    hits = response["hits"]["hits"]
    if not hits:
        raise SetupError(f"Index '{index}' is empty; run `lookup-bench seed-opensearch` first")
    source = hits[0]["_source"]
    keyword = source[KEYWORD_FIELD]
    return LookupKeySet(keys={"keyword": keyword, "text": source.get(TEXT_FIELD, keyword)})


async def fetch_index_stats(client: AsyncOpenSearch, index: str) -> IndexStats:
    """Primary document count and store size plus the field mapping types."""
    stats = await client.indices.stats(index=index)
    primaries = stats["indices"][index]["primaries"]
    mapping = await client.indices.get_mapping(index=index)
    properties = mapping[index]["mappings"].get("properties", {})
    return IndexStats(
        index=index,
        doc_count=primaries["docs"]["count"],
        size_bytes=primaries["store"]["size_in_bytes"],
        field_types={name: cfg.get("type", "object") for name, cfg in properties.items()},
    )


def _search(client: AsyncOpenSearch, index: str, body: Dict[str, Any]) -> Operation:
    async def run() -> Dict[str, Any]:
        return await client.search(index=index, body=body)

    return run


def build_opensearch_strategies(
    client: AsyncOpenSearch, index: str, keys: LookupKeySet
) -> List[LookupStrategy]:
    return [
        LookupStrategy(name=name, operation=_search(client, index, body), description=str(body))
        for name, body in query_bodies(keys)
    ]


def parse_profile(response: Dict[str, Any]) -> List[str]:
    """Top-level query time (ms) and Lucene query type from a profiled search."""
    query = response["profile"]["shards"][0]["searches"][0]["query"][0]
    return [
        f"Time: {query['time_in_nanos'] / 1_000_000:.4f}ms",
        f"Type: {query['type']}",
    ]


def _profile(client: AsyncOpenSearch, index: str, label: str, query: Dict[str, Any]) -> PlanProbe:
    async def run() -> List[str]:
        response = await client.search(index=index, body={"profile": True, "query": query})
        return parse_profile(response)

    return PlanProbe(label=label, run=run)


def profile_probes(client: AsyncOpenSearch, index: str, keys: LookupKeySet) -> List[PlanProbe]:
    """Profile the exact keyword lookup and the analyzed text lookup."""
    return [
        _profile(client, index, "keyword + term", {"term": {KEYWORD_FIELD: keys["keyword"]}}),
        _profile(client, index, "text + match", {"match": {TEXT_FIELD: keys["text"]}}),
    ]


__all__ = [
    "BASELINE",
    "RANDOM_DOC_QUERY",
    "query_bodies",
    "fetch_lookup_keys",
    "fetch_index_stats",
    "build_opensearch_strategies",
    "parse_profile",
    "profile_probes",
]
