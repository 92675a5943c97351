"""YAML-file document store.

Each collection lives in ``<state_root>/<collection>.yaml`` guarded by
``<collection>.lock``.  Every operation loads the file under the lock,
works on that snapshot, and (for writes) replaces the file atomically
before releasing the lock.  Blocking I/O runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import os
import threading
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import yaml
from filelock import FileLock, Timeout
from loguru import logger

from ..constants import SCHEMA_VERSION
from ..domain.models import FacetResult, UpdateResult, new_id
from ..errors import StoreError
from .filters import apply_patch, matches
from .interfaces import DocumentStore, Predicate, Record


R = TypeVar("R")

LOCK_TIMEOUT = 30  # seconds


class _YamlCollection:
    def __init__(self, path: Path, lock_path: Path, key: str) -> None:
        self._path = path
        self._lock = FileLock(str(lock_path), timeout=LOCK_TIMEOUT)
        self._thread_lock = threading.RLock()
        self._key = key

    def _load(self) -> list[Record]:
        if not self._path.exists():
            return []
        raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            return []
        items = raw.get(self._key, [])
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    def _save(self, items: list[Record]) -> None:
        payload = {"version": SCHEMA_VERSION, self._key: items}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(payload, handle, sort_keys=False, allow_unicode=True)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, self._path)

    def run(self, fn: Callable[[list[Record]], tuple[R, bool]]) -> R:
        """Call ``fn`` on the loaded records; persist them if it reports a change."""
        with self._thread_lock:
            try:
                with self._lock:
                    items = self._load()
                    result, dirty = fn(items)
                    if dirty:
                        self._save(items)
                    return result
            except Timeout as exc:
                raise StoreError(f"Timed out waiting for lock on {self._path.name}") from exc
            except (OSError, yaml.YAMLError) as exc:
                raise StoreError(f"{self._path.name}: {exc.__class__.__name__}: {exc}") from exc


class YamlDocumentStore(DocumentStore):
    def __init__(self, state_root: Path) -> None:
        self._state_root = state_root
        self._collections: dict[str, _YamlCollection] = {}
        self._guard = threading.Lock()

    def _collection(self, name: str) -> _YamlCollection:
        with self._guard:
            coll = self._collections.get(name)
            if coll is None:
                coll = _YamlCollection(self._state_root / f"{name}.yaml", self._state_root / f"{name}.lock", name)
                self._collections[name] = coll
            return coll

    async def _run(self, collection: str, fn: Callable[[list[Record]], tuple[R, bool]]) -> R:
        return await asyncio.to_thread(self._collection(collection).run, fn)

    async def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        def op(items: list[Record]) -> tuple[Optional[Record], bool]:
            return next((r for r in items if r.get("id") == record_id), None), False

        return await self._run(collection, op)

    async def save(self, collection: str, record: Record) -> Record:
        stored = dict(record)
        if not stored.get("id"):
            stored["id"] = new_id()

        def op(items: list[Record]) -> tuple[Record, bool]:
            for idx, existing in enumerate(items):
                if existing.get("id") == stored["id"]:
                    items[idx] = stored
                    break
            else:
                items.append(stored)
            return stored, True

        saved = await self._run(collection, op)
        logger.debug("Saved {} record {}", collection, saved["id"])
        return dict(saved)

    async def find_all_by_id(self, collection: str, record_ids: list[str]) -> list[Record]:
        wanted = set(record_ids)

        def op(items: list[Record]) -> tuple[list[Record], bool]:
            return [r for r in items if r.get("id") in wanted], False

        return await self._run(collection, op)

    async def delete_by_id(self, collection: str, record_id: str) -> bool:
        def op(items: list[Record]) -> tuple[bool, bool]:
            keep = [r for r in items if r.get("id") != record_id]
            if len(keep) == len(items):
                return False, False
            items[:] = keep
            return True, True

        deleted = await self._run(collection, op)
        if deleted:
            logger.debug("Deleted {} record {}", collection, record_id)
        return deleted

    async def find_one(self, collection: str, predicate: Predicate) -> Optional[Record]:
        def op(items: list[Record]) -> tuple[Optional[Record], bool]:
            return next((r for r in items if matches(predicate, r)), None), False

        return await self._run(collection, op)

    async def update_many(self, collection: str, predicate: Predicate, patch: dict[str, Any]) -> UpdateResult:
        def op(items: list[Record]) -> tuple[UpdateResult, bool]:
            result = UpdateResult()
            for record in [r for r in items if matches(predicate, r)]:
                result.matched += 1
                if apply_patch(record, patch):
                    result.modified += 1
            return result, result.modified > 0

        return await self._run(collection, op)

    async def update_one(self, collection: str, predicate: Predicate, patch: dict[str, Any]) -> UpdateResult:
        def op(items: list[Record]) -> tuple[UpdateResult, bool]:
            for record in items:
                if matches(predicate, record):
                    modified = apply_patch(record, patch)
                    return UpdateResult(matched=1, modified=int(modified)), modified
            return UpdateResult(), False

        return await self._run(collection, op)

    async def faceted_aggregate(self, collection: str, predicate: Predicate, skip: int, limit: int) -> FacetResult:
        def op(items: list[Record]) -> tuple[FacetResult, bool]:
            matched = [r for r in items if matches(predicate, r)]
            count_info = [{"total_count": len(matched)}] if matched else []
            return FacetResult(elements=matched[skip:skip + limit], count_info=count_info), False

        return await self._run(collection, op)
