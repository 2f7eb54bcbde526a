"""
Random corpus generation.

Every seed value is 32 bytes from the OS CSPRNG rendered as 64 lowercase hex
characters, so keys spread uniformly and index lookups see no artificial
clustering. Collisions are not checked for.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import List

from lookup_bench.domain.models import HASH_LENGTH, SeedRecord

HASH_BYTES = HASH_LENGTH // 2


def generate_hash() -> str:
    """Return 64 lowercase hex characters derived from 32 random bytes."""
    return secrets.token_hex(HASH_BYTES)


def generate_record() -> SeedRecord:
    return SeedRecord(hash=generate_hash())


def generate_batch(size: int) -> List[SeedRecord]:
    """Generate `size` records sharing one creation timestamp."""
    now = datetime.now(timezone.utc)
    return [SeedRecord(hash=generate_hash(), created_at=now) for _ in range(size)]


__all__ = ["HASH_BYTES", "generate_hash", "generate_record", "generate_batch"]
