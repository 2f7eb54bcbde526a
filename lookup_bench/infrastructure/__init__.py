"""
Infrastructure package for the hash lookup benchmark.

Centralizes backend connectivity (PostgreSQL drivers, SQLAlchemy engine,
OpenSearch client) and the loader's bulk writers. Keep this layer focused on
I/O and resource management, decoupled from harness/runner logic.
"""

from lookup_bench.infrastructure.opensearch import OpenSearchBulkWriter, build_client
from lookup_bench.infrastructure.orm import TABLE_NAME, HashRecord
from lookup_bench.infrastructure.postgres import (
    PostgresBulkWriter,
    build_dsn,
    connect_driver,
    connect_loader,
    create_orm_engine,
    create_session_factory,
)

__all__ = [
    "TABLE_NAME",
    "HashRecord",
    "OpenSearchBulkWriter",
    "PostgresBulkWriter",
    "build_client",
    "build_dsn",
    "connect_driver",
    "connect_loader",
    "create_orm_engine",
    "create_session_factory",
]
