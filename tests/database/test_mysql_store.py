from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import mysql.connector
import pytest
from mysql.connector import errorcode

from student_attendance.core.constants import ATTENDANCE_COLLECTION, USERS_COLLECTION
from student_attendance.core.exceptions import DuplicateKeyError, StoreError
from student_attendance.database.mysql_store import MySQLDocumentStore


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.rowcount = conn.rowcount
        self.lastrowid = conn.lastrowid

    def execute(self, sql, params=()):
        self._conn.executed.append((" ".join(sql.split()), tuple(params)))
        if self._conn.raise_on_execute is not None and len(self._conn.executed) >= self._conn.fail_at:
            raise self._conn.raise_on_execute

    def fetchone(self):
        return self._conn.rows[0] if self._conn.rows else None

    def fetchall(self):
        return list(self._conn.rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, *, rows=(), rowcount=0, lastrowid=None, raise_on_execute=None, fail_at=1):
        self.rows = list(rows)
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.raise_on_execute = raise_on_execute
        self.fail_at = fail_at
        self.executed = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, conn: FakeConnection):
        self.conn = conn

    def connect(self, *, with_database: bool = True):
        return self.conn


def _store(**kwargs):
    conn = FakeConnection(**kwargs)
    return MySQLDocumentStore(FakeConnFactory(conn)), conn


def test_upsert_is_one_statement_on_the_unique_key():
    store, conn = _store(rowcount=1, lastrowid=7)
    now = datetime(2024, 3, 5, 10, 0, tzinfo=timezone(timedelta(hours=2)))

    result = store.upsert(
        ATTENDANCE_COLLECTION,
        key={"student_id": "3", "day": date(2024, 3, 5)},
        insert_fields={"status": "present", "created_by": "1", "created_at": now},
        update_fields={"status": "present", "updated_at": now, "updated_by": "1"},
    )

    assert result.id == "7"
    assert result.created is True
    assert conn.committed and conn.closed
    (sql, params), = conn.executed
    assert sql.startswith("INSERT INTO attendance_records(status,created_by,created_at,student_id,day)")
    assert "ON DUPLICATE KEY UPDATE id=LAST_INSERT_ID(id), status=%s, updated_at=%s, updated_by=%s" in sql
    # Aware datetimes are stored as naive UTC
    assert params[2] == datetime(2024, 3, 5, 8, 0)


@pytest.mark.parametrize("rowcount", [0, 2])
def test_upsert_on_existing_row_is_not_created(rowcount):
    store, _ = _store(rowcount=rowcount, lastrowid=4)
    result = store.upsert(
        ATTENDANCE_COLLECTION,
        key={"student_id": "3", "day": date(2024, 3, 5)},
        insert_fields={"status": "late"},
        update_fields={"status": "late"},
    )
    assert result.id == "4"
    assert result.created is False


def test_upsert_rejects_non_unique_key():
    store, conn = _store()
    with pytest.raises(StoreError):
        store.upsert(ATTENDANCE_COLLECTION, {"day": date(2024, 3, 5)}, {"status": "late"}, {"status": "late"})
    assert conn.executed == []


def test_query_builds_where_order_and_limit():
    created = datetime(2024, 3, 1, 8, 0)
    store, conn = _store(rows=[{"id": 5, "name": "Alice", "created_at": created, "semester": None}])

    docs = store.query(
        USERS_COLLECTION,
        [("role", "==", "student"), ("semester", "==", None), ("name", ">=", "A")],
        order_by=["name", "-created_at"],
        limit=10,
    )

    sql, params = conn.executed[0]
    assert sql == (
        "SELECT * FROM users WHERE role = %s AND semester IS NULL AND name >= %s "
        "ORDER BY name ASC, created_at DESC LIMIT %s"
    )
    assert params == ("student", "A", 10)
    assert docs[0]["id"] == "5"
    assert docs[0]["created_at"].tzinfo == timezone.utc


def test_unknown_column_never_reaches_sql():
    store, conn = _store()
    with pytest.raises(StoreError):
        store.query(USERS_COLLECTION, [("name; DROP TABLE users", "==", "x")])
    with pytest.raises(StoreError):
        store.query(USERS_COLLECTION, order_by=["password_hash; --"])
    assert conn.executed == []


def test_duplicate_entry_is_translated():
    err = mysql.connector.IntegrityError(msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY)
    store, conn = _store(raise_on_execute=err)

    with pytest.raises(DuplicateKeyError):
        store.insert(USERS_COLLECTION, {"email": "a@x.io", "name": "A", "role": "student", "password_hash": "x"})
    assert conn.rolled_back and not conn.committed and conn.closed


def test_driver_error_becomes_store_error():
    store, conn = _store(raise_on_execute=mysql.connector.OperationalError(msg="gone away", errno=2006))
    with pytest.raises(StoreError):
        store.get(USERS_COLLECTION, "1")
    assert conn.rolled_back


def test_update_reports_missing_row():
    store, conn = _store(rowcount=0, rows=[])
    assert store.update(USERS_COLLECTION, "9", {"name": "X"}) is False
    assert conn.executed[0][0] == "UPDATE users SET name=%s WHERE id=%s"


def test_update_without_change_still_succeeds():
    store, _ = _store(rowcount=0, rows=[{"found": 1}])
    assert store.update(USERS_COLLECTION, "9", {"name": "Same"}) is True


def test_non_numeric_id_is_a_miss():
    store, conn = _store()
    assert store.get(USERS_COLLECTION, "abc") is None
    assert store.delete(USERS_COLLECTION, "1 OR 1=1") is False
    assert conn.executed == []


def test_upsert_many_rolls_back_the_whole_batch():
    err = mysql.connector.OperationalError(msg="lock wait timeout", errno=1205)
    store, conn = _store(rowcount=1, lastrowid=3, raise_on_execute=err, fail_at=2)
    day = date(2024, 3, 5)

    with pytest.raises(StoreError):
        store.upsert_many(
            ATTENDANCE_COLLECTION,
            [
                ({"student_id": "1", "day": day}, {"status": "present"}, {"status": "present"}),
                ({"student_id": "2", "day": day}, {"status": "late"}, {"status": "late"}),
            ],
        )

    assert len(conn.executed) == 2
    assert conn.rolled_back and not conn.committed


def test_upsert_many_uses_one_connection():
    store, conn = _store(rowcount=1, lastrowid=3)
    day = date(2024, 3, 5)
    results = store.upsert_many(
        ATTENDANCE_COLLECTION,
        [
            ({"student_id": "1", "day": day}, {"status": "present"}, {"status": "present"}),
            ({"student_id": "2", "day": day}, {"status": "late"}, {"status": "late"}),
        ],
    )
    assert [r.created for r in results] == [True, True]
    assert len(conn.executed) == 2 and conn.committed
