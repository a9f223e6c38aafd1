from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..attendance.service import AttendanceReader
from ..auth.role_gate import RoleGate
from ..auth.session import Session
from ..common.datetime_utils import month_bounds, to_calendar_day
from ..core.enums import STAFF_ROLES, Role
from ..core.exceptions import NotFoundError
from ..users.repository import UserRepository
from .aggregation import AttendanceSummary, count_by_status, latest_per_day, summarize, summarize_by_student


@dataclass(frozen=True)
class StudentReport:
    student_id: str
    name: str
    start: date
    end: date
    records: list[AttendanceRecord]
    summary: AttendanceSummary

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "name": self.name,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "records": [r.to_dict() for r in self.records],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict


class ReportService:
    """Read-side use cases for the student, teacher and hod views.

    All numbers come from reports.aggregation; this class only fetches
    (through the role-scoped AttendanceReader) and shapes.
    """

    def __init__(self, reader: AttendanceReader, users: UserRepository, role_gate: RoleGate):
        self._reader = reader
        self._users = users
        self._gate = role_gate

    def student_summary(self, actor: Session, *, student_id: Optional[str], date_from, date_to) -> StudentReport:
        records = self._reader.query_range(actor, date_from=date_from, date_to=date_to, student_id=student_id)
        target_id = actor.user_id if actor.role == Role.STUDENT else student_id

        student = self._users.get_by_id(target_id) if target_id else None
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("Student not found")

        kept = latest_per_day(records)
        return StudentReport(
            student_id=student.user_id,
            name=student.name,
            start=to_calendar_day(date_from),
            end=to_calendar_day(date_to),
            records=kept,
            summary=summarize(kept),
        )

    def monthly_summary(self, actor: Session, *, year: int, month: int, student_id: Optional[str] = None) -> StudentReport:
        start, end = month_bounds(year, month)
        return self.student_summary(actor, student_id=student_id, date_from=start, date_to=end)

    def class_report(self, actor: Session, *, date_from, date_to) -> ReportData:
        self._gate.require(actor, *STAFF_ROLES)
        records = self._reader.query_range(actor, date_from=date_from, date_to=date_to)
        per_student = summarize_by_student(records)

        students = self._users.list_by_role(Role.STUDENT)
        listed = {s.user_id for s in students}

        rows: list[dict] = []
        for student in students:
            s = per_student.get(student.user_id, AttendanceSummary())
            rows.append(
                {
                    "student_id": student.user_id,
                    "name": student.name,
                    "enrollment_id": student.enrollment_id or "N/A",
                    **s.to_dict(),
                }
            )

        # Totals cover the same students as the rows (inactive accounts are left out of both).
        overall = summarize([r for r in records if r.student_id in listed])
        return ReportData(
            rows=rows,
            summary={
                "start": to_calendar_day(date_from).isoformat(),
                "end": to_calendar_day(date_to).isoformat(),
                "students": len(rows),
                **overall.to_dict(),
            },
        )

    def daily_counts(self, actor: Session, *, day) -> ReportData:
        """Roll-call view for one day: each student's status plus counters."""
        records = latest_per_day(self._reader.records_for_day(actor, day=day))
        by_student = {r.student_id: r for r in records}

        students = self._users.list_by_role(Role.STUDENT)
        listed = {s.user_id for s in students}

        rows: list[dict] = []
        for student in students:
            r = by_student.get(student.user_id)
            rows.append(
                {
                    "student_id": student.user_id,
                    "name": student.name,
                    "enrollment_id": student.enrollment_id or "N/A",
                    "status": r.status.value if r else None,
                    "record_id": r.record_id if r else None,
                }
            )

        counts = count_by_status([r for r in records if r.student_id in listed])
        counts["unmarked"] = sum(1 for row in rows if row["status"] is None)
        return ReportData(rows=rows, summary={"date": to_calendar_day(day).isoformat(), **counts})
