"""
SQLAlchemy mapping of the `hash_records` table.

The column names and types are the contract the loader writes and every
benchmark query reads; the DDL that creates them lives next to the bulk writer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

TABLE_NAME = "hash_records"


class Base(DeclarativeBase):
    pass


class HashRecord(Base):
    __tablename__ = TABLE_NAME

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    hash_btree: Mapped[str] = mapped_column(String(64))
    hash_hash: Mapped[str] = mapped_column(String(64))
    hash_noindex: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    status: Mapped[int] = mapped_column(Integer, default=0)
    # `metadata` is reserved on declarative classes
    metadata_: Mapped[Dict[str, Any]] = mapped_column("metadata", JSONB, default=dict)

    def __repr__(self) -> str:
        return f"HashRecord(id={self.id!r}, hash_btree={self.hash_btree!r})"


__all__ = ["TABLE_NAME", "Base", "HashRecord"]
