from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..domain.models import FacetResult, UpdateResult

Record = dict[str, Any]
Predicate = dict[str, Any]


class DocumentStore(ABC):
    """Asynchronous document store holding records grouped by collection.

    A single-record write is atomic.  Nothing spans records: a sequence of
    ``save`` calls can be interleaved with other writers and can stop part
    way through.
    """

    @abstractmethod
    async def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        raise NotImplementedError

    @abstractmethod
    async def save(self, collection: str, record: Record) -> Record:
        """Insert or replace ``record``; assigns ``id`` when it has none."""
        raise NotImplementedError

    @abstractmethod
    async def find_all_by_id(self, collection: str, record_ids: list[str]) -> list[Record]:
        """Return the stored records whose id is in ``record_ids``, each at most once."""
        raise NotImplementedError

    @abstractmethod
    async def delete_by_id(self, collection: str, record_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def find_one(self, collection: str, predicate: Predicate) -> Optional[Record]:
        raise NotImplementedError

    @abstractmethod
    async def update_many(self, collection: str, predicate: Predicate, patch: dict[str, Any]) -> UpdateResult:
        raise NotImplementedError

    @abstractmethod
    async def update_one(self, collection: str, predicate: Predicate, patch: dict[str, Any]) -> UpdateResult:
        raise NotImplementedError

    @abstractmethod
    async def faceted_aggregate(self, collection: str, predicate: Predicate, skip: int, limit: int) -> FacetResult:
        """Return one page of matching records and the total match count from one snapshot."""
        raise NotImplementedError
