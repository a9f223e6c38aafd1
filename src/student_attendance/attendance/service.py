from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional, Sequence

from ..auth.role_gate import RoleGate
from ..auth.session import Session
from ..common.datetime_utils import now_utc, to_calendar_day
from ..common.validators import parse_status, require_non_empty
from ..core.enums import STAFF_ROLES, AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import AttendanceRecord, MarkResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PreparedMark:
    student_id: str
    day: date
    status: AttendanceStatus


class AttendanceWriter:
    """Use case: teacher/hod marks a student's status for a day.

    One record per (student, day): the repository upsert is atomic on that key,
    so repeated or concurrent marks update instead of duplicating.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        role_gate: RoleGate,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._gate = role_gate
        self._clock = clock or now_utc

    def _today(self) -> date:
        now = self._clock()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.date()

    def _prepare(self, student_id, day, status) -> _PreparedMark:
        student_id = require_non_empty(student_id, "Student")
        if day is None or day == "":
            raise ValidationError("Date is required")
        day = to_calendar_day(day)
        status = parse_status(status)

        if day > self._today():
            raise ValidationError("Cannot mark attendance for a future date")

        student = self._users.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")
        if student.role != Role.STUDENT:
            raise ValidationError("Attendance can only be marked for students")
        if not student.is_active:
            raise ValidationError("Student account is disabled")

        return _PreparedMark(student_id=student.user_id, day=day, status=status)

    def _log(self, actor: Session, result: MarkResult) -> None:
        logger.info(
            "%s attendance %s for student %s on %s by %s",
            "Created" if result.created else "Updated",
            result.status.value,
            result.student_id,
            result.day.isoformat(),
            actor.user_id,
        )

    def mark_attendance(self, actor: Session, *, student_id: str, day, status) -> MarkResult:
        actor = self._gate.require(actor, *STAFF_ROLES)
        mark = self._prepare(student_id, day, status)
        result = self._attendance.upsert_status(
            student_id=mark.student_id,
            day=mark.day,
            status=mark.status,
            author_id=actor.user_id,
            now=self._clock(),
        )
        self._log(actor, result)
        return result

    def mark_many(self, actor: Session, *, day, marks: Iterable[dict]) -> list[MarkResult]:
        """Roll-call: mark several students for one day.

        Every mark is validated before anything is written, and the writes
        land as one unit: a store failure leaves none of them applied.
        """
        actor = self._gate.require(actor, *STAFF_ROLES)

        prepared: list[_PreparedMark] = []
        seen: set[str] = set()
        for m in marks:
            p = self._prepare(m.get("student_id"), day, m.get("status"))
            if p.student_id in seen:
                raise ValidationError(f"Student {p.student_id} appears twice in the roll-call")
            seen.add(p.student_id)
            prepared.append(p)

        if not prepared:
            raise ValidationError("Roll-call is empty")

        results = self._attendance.upsert_statuses(
            marks=[(p.student_id, p.day, p.status) for p in prepared],
            author_id=actor.user_id,
            now=self._clock(),
        )
        for r in results:
            self._log(actor, r)
        return results


class AttendanceReader:
    """Use case: range/point queries, scoped by the caller's role.

    Students only see their own records; teachers and hods see everyone.
    Bounds are inclusive UTC calendar days.
    """

    def __init__(self, attendance: AttendanceRepository, role_gate: RoleGate):
        self._attendance = attendance
        self._gate = role_gate

    @staticmethod
    def _scope(actor: Session, student_id: Optional[str]) -> Optional[str]:
        if actor.role != Role.STUDENT:
            return str(student_id) if student_id else None
        if student_id and str(student_id) != actor.user_id:
            raise AuthorizationError("Students can only view their own attendance")
        return actor.user_id

    def query_range(
        self,
        actor: Session,
        *,
        date_from,
        date_to,
        student_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        actor = self._gate.require(actor)
        if not date_from or not date_to:
            raise ValidationError("Both start and end dates are required")

        start = to_calendar_day(date_from)
        end = to_calendar_day(date_to)
        if start > end:
            raise ValidationError("Start date must be on or before end date")

        return self._attendance.query_range(start_day=start, end_day=end, student_id=self._scope(actor, student_id))

    def get_record(self, actor: Session, *, student_id: str, day) -> Optional[AttendanceRecord]:
        actor = self._gate.require(actor)
        scoped = self._scope(actor, require_non_empty(student_id, "Student"))
        return self._attendance.get_for_student_and_day(scoped, to_calendar_day(day))

    def records_for_day(self, actor: Session, *, day) -> Sequence[AttendanceRecord]:
        self._gate.require(actor, *STAFF_ROLES)
        d = to_calendar_day(day)
        return self._attendance.query_range(start_day=d, end_day=d)
