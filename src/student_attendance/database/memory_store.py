from __future__ import annotations

import copy
import itertools
import threading
from typing import Any, Mapping, Optional, Sequence

from ..core.exceptions import DuplicateKeyError, StoreError
from .base import (
    COLLECTIONS,
    CollectionSpec,
    Document,
    DocumentStore,
    Filter,
    OPERATORS,
    UpsertItem,
    UpsertResult,
    check_fields,
    check_upsert,
    get_spec,
    parse_order,
)


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe in-process store.

    Every mutation runs under one lock, so `upsert` is a real
    check-and-insert and unique keys hold under concurrent writers.
    """

    def __init__(self, collections: Optional[Mapping[str, CollectionSpec]] = None):
        self._specs = dict(collections or COLLECTIONS)
        self._docs: dict[str, dict[str, Document]] = {name: {} for name in self._specs}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def _spec(self, collection: str) -> CollectionSpec:
        if collection not in self._specs:
            return get_spec(collection)
        return self._specs[collection]

    def _find_conflict(self, spec: CollectionSpec, candidate: Mapping[str, Any], skip_id: Optional[str]) -> Optional[str]:
        for key in spec.unique:
            if any(candidate.get(k) is None for k in key):
                continue
            wanted = tuple(candidate.get(k) for k in key)
            for doc_id, doc in self._docs[spec.name].items():
                if doc_id == skip_id:
                    continue
                if tuple(doc.get(k) for k in key) == wanted:
                    return doc_id
        return None

    def insert(self, collection: str, fields: Mapping[str, Any]) -> str:
        spec = self._spec(collection)
        check_fields(spec, fields)
        with self._lock:
            if self._find_conflict(spec, fields, None):
                raise DuplicateKeyError(f"Duplicate key in {collection}")
            doc_id = str(next(self._ids))
            doc = {k: v for k, v in fields.items() if k != "id"}
            doc["id"] = doc_id
            self._docs[collection][doc_id] = doc
            return doc_id

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        spec = self._spec(collection)
        check_fields(spec, fields)
        with self._lock:
            doc = self._docs[collection].get(str(doc_id))
            if doc is None:
                return False
            merged = {**doc, **{k: v for k, v in fields.items() if k != "id"}}
            if self._find_conflict(spec, merged, str(doc_id)):
                raise DuplicateKeyError(f"Duplicate key in {collection}")
            self._docs[collection][str(doc_id)] = merged
            return True

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        self._spec(collection)
        with self._lock:
            doc = self._docs[collection].get(str(doc_id))
            return copy.deepcopy(doc) if doc else None

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        spec = self._spec(collection)
        check_fields(spec, [f[0] for f in filters])
        for _, op, _ in filters:
            if op not in OPERATORS:
                raise StoreError(f"Unsupported operator: {op}")

        with self._lock:
            docs = [copy.deepcopy(d) for d in self._docs[collection].values()]

        out = [d for d in docs if all(_match(d, f) for f in filters)]

        # Stable sort applied from the last key to the first.
        for name, descending in reversed(parse_order(order_by)):
            check_fields(spec, [name])
            out.sort(key=lambda d: _sort_key(d.get(name)), reverse=descending)

        if limit is not None:
            out = out[: int(limit)]
        return out

    def upsert(
        self,
        collection: str,
        key: Mapping[str, Any],
        insert_fields: Mapping[str, Any],
        update_fields: Mapping[str, Any],
    ) -> UpsertResult:
        return self.upsert_many(collection, [(key, insert_fields, update_fields)])[0]

    def upsert_many(
        self,
        collection: str,
        items: Sequence[UpsertItem],
    ) -> list[UpsertResult]:
        spec = self._spec(collection)
        for key, insert_fields, update_fields in items:
            check_upsert(spec, key, insert_fields, update_fields)

        with self._lock:
            snapshot = copy.deepcopy(self._docs[collection])
            try:
                return [self._upsert_one(spec, key, ins, upd) for key, ins, upd in items]
            except Exception:
                self._docs[collection] = snapshot
                raise

    def _upsert_one(self, spec: CollectionSpec, key, insert_fields, update_fields) -> UpsertResult:
        existing = self._find_conflict(spec, key, None)
        if existing:
            self._docs[spec.name][existing].update(update_fields)
            return UpsertResult(id=existing, created=False)
        doc_id = self.insert(spec.name, {**insert_fields, **key})
        return UpsertResult(id=doc_id, created=True)

    def delete(self, collection: str, doc_id: str) -> bool:
        self._spec(collection)
        with self._lock:
            return self._docs[collection].pop(str(doc_id), None) is not None


def _match(doc: Document, flt: Filter) -> bool:
    name, op, value = flt
    current = doc.get(name)
    if current is None and op not in {"==", "!="}:
        return False
    try:
        return OPERATORS[op](current, value)
    except TypeError:
        return False


def _sort_key(value):
    # None sorts first, like NULL in MySQL ascending order.
    return (value is not None, value)
