"""
Typed DTOs used by the record store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class StoreMetadata(TypedDict):
    createdAt: str | None
    updatedAt: str | None
    description: str


class StoreDocument(TypedDict):
    records: list[dict[str, Any]]
    metadata: StoreMetadata


@dataclass(frozen=True)
class BulkInsertResult:
    """
    Outcome of one append: rows written and the store size afterwards.
    """

    inserted: int
    total: int
