from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, MarkResult


class AttendanceRepository(Protocol):
    def get_for_student_and_day(self, student_id: str, day: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert_status(
        self,
        *,
        student_id: str,
        day: date,
        status: AttendanceStatus,
        author_id: str,
        now: datetime,
    ) -> MarkResult:
        """Create or update the single record of (student_id, day) atomically."""

        raise NotImplementedError

    def upsert_statuses(
        self,
        *,
        marks: Sequence[tuple[str, date, AttendanceStatus]],
        author_id: str,
        now: datetime,
    ) -> list[MarkResult]:
        """Apply several (student_id, day, status) marks as one unit: all or none."""

        raise NotImplementedError

    def query_range(
        self,
        *,
        start_day: date,
        end_day: date,
        student_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def has_references(self, user_id: str) -> bool:
        """True if any record names the user as student or as author."""

        raise NotImplementedError
