from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from ..core.constants import ATTENDANCE_COLLECTION, USERS_COLLECTION
from ..core.exceptions import StoreError

Document = dict[str, Any]
Filter = tuple[str, str, Any]
# (key, insert_fields, update_fields)
UpsertItem = tuple[Mapping[str, Any], Mapping[str, Any], Mapping[str, Any]]

OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class CollectionSpec:
    """Logical schema of a collection.

    `fields` excludes the `id` key. `unique` lists the composite keys that a
    backend must enforce on insert, update and upsert.
    """

    name: str
    table: str
    fields: tuple[str, ...]
    unique: tuple[tuple[str, ...], ...] = field(default_factory=tuple)


COLLECTIONS: dict[str, CollectionSpec] = {
    USERS_COLLECTION: CollectionSpec(
        name=USERS_COLLECTION,
        table="users",
        fields=(
            "email",
            "name",
            "role",
            "password_hash",
            "is_active",
            "enrollment_id",
            "course",
            "semester",
            "phone",
            "employee_id",
            "department",
            "created_at",
            "updated_at",
        ),
        unique=(("email",),),
    ),
    ATTENDANCE_COLLECTION: CollectionSpec(
        name=ATTENDANCE_COLLECTION,
        table="attendance_records",
        fields=("student_id", "day", "status", "created_by", "created_at", "updated_at", "updated_by"),
        unique=(("student_id", "day"),),
    ),
}


@dataclass(frozen=True)
class UpsertResult:
    id: str
    created: bool


def get_spec(collection: str) -> CollectionSpec:
    spec = COLLECTIONS.get(collection)
    if not spec:
        raise StoreError(f"Unknown collection: {collection}")
    return spec


def check_fields(spec: CollectionSpec, names) -> None:
    unknown = [n for n in names if n != "id" and n not in spec.fields]
    if unknown:
        raise StoreError(f"Unknown field(s) for {spec.name}: {', '.join(sorted(unknown))}")


def check_upsert(spec: CollectionSpec, key, insert_fields, update_fields) -> None:
    if tuple(key) not in spec.unique:
        raise StoreError(f"{tuple(key)} is not a unique key of {spec.name}")
    check_fields(spec, list(key) + list(insert_fields) + list(update_fields))


def parse_order(order_by: Optional[Sequence[str]]) -> list[tuple[str, bool]]:
    """Turn ["day", "-created_at"] into [("day", False), ("created_at", True)]."""
    out: list[tuple[str, bool]] = []
    for item in order_by or ():
        if item.startswith("-"):
            out.append((item[1:], True))
        else:
            out.append((item, False))
    return out


class DocumentStore(Protocol):
    """Generic document collection used by the repositories.

    Backends: InMemoryDocumentStore (tests, dev) and MySQLDocumentStore.
    """

    def insert(self, collection: str, fields: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        raise NotImplementedError

    def upsert(
        self,
        collection: str,
        key: Mapping[str, Any],
        insert_fields: Mapping[str, Any],
        update_fields: Mapping[str, Any],
    ) -> UpsertResult:
        """Atomic compare-and-insert on a unique key of the collection."""

        raise NotImplementedError

    def upsert_many(self, collection: str, items: Sequence[UpsertItem]) -> list[UpsertResult]:
        """Run several upserts as one unit: all of them apply or none does."""

        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError
