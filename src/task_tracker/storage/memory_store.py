from __future__ import annotations

import copy
from collections import defaultdict
from typing import Any, Optional

from loguru import logger

from ..domain.models import FacetResult, UpdateResult, new_id
from .filters import apply_patch, matches
from .interfaces import DocumentStore, Predicate, Record


class MemoryDocumentStore(DocumentStore):
    """Process-local store; collections are lists kept in insertion order.

    No call awaits while touching a collection, so each operation sees and
    leaves a consistent snapshot.  Callers always receive copies.
    """

    def __init__(self) -> None:
        self._collections: dict[str, list[Record]] = defaultdict(list)

    def _index_of(self, collection: str, record_id: str) -> Optional[int]:
        for idx, record in enumerate(self._collections[collection]):
            if record.get("id") == record_id:
                return idx
        return None

    async def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        idx = self._index_of(collection, record_id)
        if idx is None:
            return None
        return copy.deepcopy(self._collections[collection][idx])

    async def save(self, collection: str, record: Record) -> Record:
        stored = copy.deepcopy(record)
        if not stored.get("id"):
            stored["id"] = new_id()
        idx = self._index_of(collection, stored["id"])
        if idx is None:
            self._collections[collection].append(stored)
        else:
            self._collections[collection][idx] = stored
        logger.debug("Saved {} record {}", collection, stored["id"])
        return copy.deepcopy(stored)

    async def find_all_by_id(self, collection: str, record_ids: list[str]) -> list[Record]:
        wanted = set(record_ids)
        return [copy.deepcopy(r) for r in self._collections[collection] if r.get("id") in wanted]

    async def delete_by_id(self, collection: str, record_id: str) -> bool:
        idx = self._index_of(collection, record_id)
        if idx is None:
            return False
        self._collections[collection].pop(idx)
        logger.debug("Deleted {} record {}", collection, record_id)
        return True

    async def find_one(self, collection: str, predicate: Predicate) -> Optional[Record]:
        for record in self._collections[collection]:
            if matches(predicate, record):
                return copy.deepcopy(record)
        return None

    async def update_many(self, collection: str, predicate: Predicate, patch: dict[str, Any]) -> UpdateResult:
        result = UpdateResult()
        for record in [r for r in self._collections[collection] if matches(predicate, r)]:
            result.matched += 1
            if apply_patch(record, patch):
                result.modified += 1
        return result

    async def update_one(self, collection: str, predicate: Predicate, patch: dict[str, Any]) -> UpdateResult:
        for record in self._collections[collection]:
            if matches(predicate, record):
                return UpdateResult(matched=1, modified=1 if apply_patch(record, patch) else 0)
        return UpdateResult()

    async def faceted_aggregate(self, collection: str, predicate: Predicate, skip: int, limit: int) -> FacetResult:
        matched = [r for r in self._collections[collection] if matches(predicate, r)]
        elements = copy.deepcopy(matched[skip:skip + limit])
        count_info = [{"total_count": len(matched)}] if matched else []
        return FacetResult(elements=elements, count_info=count_info)
