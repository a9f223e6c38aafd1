from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.constants import ATTENDANCE_COLLECTION
from ..core.enums import AttendanceStatus
from ..database.base import Document, DocumentStore
from .model import AttendanceRecord, MarkResult
from .repository import AttendanceRepository


class StoreAttendanceRepository(AttendanceRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    @staticmethod
    def _to_record(doc: Document) -> AttendanceRecord:
        day = doc["day"]
        if isinstance(day, datetime):
            day = day.date()
        return AttendanceRecord(
            record_id=str(doc["id"]),
            student_id=str(doc["student_id"]),
            day=day,
            status=AttendanceStatus(doc["status"]),
            created_by=str(doc["created_by"]),
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at"),
            updated_by=str(doc["updated_by"]) if doc.get("updated_by") is not None else None,
        )

    def get_for_student_and_day(self, student_id: str, day: date) -> Optional[AttendanceRecord]:
        docs = self._store.query(
            ATTENDANCE_COLLECTION,
            [("student_id", "==", str(student_id)), ("day", "==", day)],
            limit=1,
        )
        return self._to_record(docs[0]) if docs else None

    @staticmethod
    def _upsert_item(student_id: str, day: date, status: AttendanceStatus, author_id: str, now: datetime):
        return (
            {"student_id": str(student_id), "day": day},
            {"status": status.value, "created_by": str(author_id), "created_at": now},
            {"status": status.value, "updated_at": now, "updated_by": str(author_id)},
        )

    def upsert_status(
        self,
        *,
        student_id: str,
        day: date,
        status: AttendanceStatus,
        author_id: str,
        now: datetime,
    ) -> MarkResult:
        return self.upsert_statuses(marks=[(student_id, day, status)], author_id=author_id, now=now)[0]

    def upsert_statuses(
        self,
        *,
        marks: Sequence[tuple[str, date, AttendanceStatus]],
        author_id: str,
        now: datetime,
    ) -> list[MarkResult]:
        results = self._store.upsert_many(
            ATTENDANCE_COLLECTION,
            [self._upsert_item(student_id, day, status, author_id, now) for student_id, day, status in marks],
        )
        return [
            MarkResult(record_id=r.id, student_id=str(student_id), day=day, status=status, created=r.created)
            for (student_id, day, status), r in zip(marks, results)
        ]

    def query_range(
        self,
        *,
        start_day: date,
        end_day: date,
        student_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        filters = [("day", ">=", start_day), ("day", "<=", end_day)]
        if student_id is not None:
            filters.append(("student_id", "==", str(student_id)))
        docs = self._store.query(ATTENDANCE_COLLECTION, filters, order_by=["day", "student_id"])
        return [self._to_record(d) for d in docs]

    def has_references(self, user_id: str) -> bool:
        as_student = self._store.query(ATTENDANCE_COLLECTION, [("student_id", "==", str(user_id))], limit=1)
        as_author = self._store.query(ATTENDANCE_COLLECTION, [("created_by", "==", str(user_id))], limit=1)
        return bool(as_student or as_author)
