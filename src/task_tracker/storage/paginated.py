from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from ..domain.models import Criterion, Page
from .filters import compile_filter
from .interfaces import DocumentStore, Predicate


T = TypeVar("T")


class PaginatedRepository(Generic[T]):
    """CRUD plus filtered pagination over one collection of ``T`` records.

    Subclasses bind the collection name and the record (de)serialisers.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        loader: Callable[[dict[str, Any]], T],
        dumper: Callable[[T], dict[str, Any]],
    ) -> None:
        self._store = store
        self._collection = collection
        self._loader = loader
        self._dumper = dumper

    async def find_by_id(self, record_id: str) -> Optional[T]:
        raw = await self._store.find_by_id(self._collection, record_id)
        return self._loader(raw) if raw is not None else None

    async def find_all_by_id(self, record_ids: list[str]) -> list[T]:
        return [self._loader(raw) for raw in await self._store.find_all_by_id(self._collection, record_ids)]

    async def save(self, item: T) -> T:
        return self._loader(await self._store.save(self._collection, self._dumper(item)))

    async def delete_by_id(self, record_id: str) -> bool:
        return await self._store.delete_by_id(self._collection, record_id)

    async def query(self, predicate: Predicate, page: int, size: int) -> Page[T]:
        """Run one faceted aggregate: the requested slice plus the full match count.

        ``page`` and ``size`` are used as given; callers reject bad values.
        """
        facet = await self._store.faceted_aggregate(self._collection, predicate, page * size, size)
        return Page(
            items=[self._loader(raw) for raw in facet.elements],
            total=facet.total_count,
            page=page,
            size=size,
        )

    async def find_with_pagination_and_filter(self, size: int, page: int, criteria: Iterable[Criterion]) -> Page[T]:
        return await self.query(compile_filter(criteria), page, size)
