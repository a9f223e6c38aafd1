from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.exceptions import StoreError
from .base import (
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
from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchall, fetchone, from_mysql_value, to_mysql_value


class MySQLDocumentStore(DocumentStore):
    """DocumentStore over MySQL tables (one table per collection, `id` AUTO_INCREMENT).

    Column names are checked against the CollectionSpec before they reach SQL.
    Unique keys live in schema.sql; `upsert` relies on them through
    INSERT ... ON DUPLICATE KEY UPDATE, so it is a single atomic statement.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _row_to_doc(row: Mapping[str, Any]) -> Document:
        doc = {k: from_mysql_value(v) for k, v in row.items()}
        doc["id"] = str(doc["id"])
        return doc

    def insert(self, collection: str, fields: Mapping[str, Any]) -> str:
        spec = get_spec(collection)
        check_fields(spec, fields)
        cols = [c for c in fields if c != "id"]
        placeholders = ",".join(["%s"] * len(cols))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO {spec.table}({','.join(cols)}) VALUES({placeholders})",
                tuple(to_mysql_value(fields[c]) for c in cols),
            )
            return str(cur.lastrowid)

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        spec = get_spec(collection)
        check_fields(spec, fields)
        if not _is_row_id(doc_id):
            return False
        cols = [c for c in fields if c != "id"]
        if not cols:
            return self.get(collection, doc_id) is not None

        assignments = ", ".join(f"{c}=%s" for c in cols)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE {spec.table} SET {assignments} WHERE id=%s",
                tuple(to_mysql_value(fields[c]) for c in cols) + (int(doc_id),),
            )
            if cur.rowcount > 0:
                return True
            # Matched but unchanged also counts as success.
            cur.execute(f"SELECT 1 AS found FROM {spec.table} WHERE id=%s", (int(doc_id),))
            return fetchone(cur) is not None

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        spec = get_spec(collection)
        if not _is_row_id(doc_id):
            return None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT * FROM {spec.table} WHERE id=%s", (int(doc_id),))
            row = fetchone(cur)
            return self._row_to_doc(row) if row else None

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        spec = get_spec(collection)
        clauses: list[str] = []
        params: list[object] = []

        for name, op, value in filters:
            check_fields(spec, [name])
            if op not in OPERATORS:
                raise StoreError(f"Unsupported operator: {op}")
            if value is None and op in {"==", "!="}:
                clauses.append(f"{name} IS {'NOT ' if op == '!=' else ''}NULL")
                continue
            clauses.append(f"{name} {'=' if op == '==' else op} %s")
            params.append(to_mysql_value(value))

        sql = f"SELECT * FROM {spec.table}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)

        order = parse_order(order_by)
        if order:
            check_fields(spec, [name for name, _ in order])
            sql += " ORDER BY " + ", ".join(f"{name} {'DESC' if desc else 'ASC'}" for name, desc in order)
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._row_to_doc(r) for r in fetchall(cur)]

    def upsert(
        self,
        collection: str,
        key: Mapping[str, Any],
        insert_fields: Mapping[str, Any],
        update_fields: Mapping[str, Any],
    ) -> UpsertResult:
        return self.upsert_many(collection, [(key, insert_fields, update_fields)])[0]

    def upsert_many(self, collection: str, items: Sequence[UpsertItem]) -> list[UpsertResult]:
        spec = get_spec(collection)
        statements = []
        for key, insert_fields, update_fields in items:
            check_upsert(spec, key, insert_fields, update_fields)
            statements.append(_upsert_statement(spec.table, key, insert_fields, update_fields))

        # One transaction: db_cursor rolls every statement back if any of them fails.
        results: list[UpsertResult] = []
        with db_cursor(self._conn_factory) as (_, cur):
            for sql, params in statements:
                cur.execute(sql, params)
                # rowcount: 1 = inserted, 2 = updated, 0 = row already had these values (FOUND_ROWS off)
                results.append(UpsertResult(id=str(cur.lastrowid), created=cur.rowcount == 1))
        return results

    def delete(self, collection: str, doc_id: str) -> bool:
        spec = get_spec(collection)
        if not _is_row_id(doc_id):
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM {spec.table} WHERE id=%s", (int(doc_id),))
            return cur.rowcount > 0


def _is_row_id(doc_id) -> bool:
    return str(doc_id).isdigit()


def _upsert_statement(table: str, key, insert_fields, update_fields) -> tuple[str, tuple]:
    row = {**insert_fields, **key}
    cols = list(row)
    update_cols = [c for c in update_fields if c not in key]
    # LAST_INSERT_ID(id) makes lastrowid point at the existing row on update.
    assignments = ", ".join(["id=LAST_INSERT_ID(id)"] + [f"{c}=%s" for c in update_cols])
    sql = f"""
        INSERT INTO {table}({','.join(cols)})
        VALUES({','.join(['%s'] * len(cols))})
        ON DUPLICATE KEY UPDATE {assignments}
    """
    params = tuple(to_mysql_value(row[c]) for c in cols) + tuple(to_mysql_value(update_fields[c]) for c in update_cols)
    return sql, params
