"""Attendance aggregation.

The one place that turns raw per-day records into counts and a percentage.
Every report and every HTTP view goes through `summarize`, so the weight of a
late day (LATE_WEIGHT) is the same everywhere.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ..attendance.model import AttendanceRecord
from ..core.constants import LATE_WEIGHT
from ..core.enums import AttendanceStatus

_LATE_WEIGHT = Decimal(str(LATE_WEIGHT))


@dataclass(frozen=True)
class AttendanceSummary:
    present_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    total_days: int = 0
    attendance_percentage: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def latest_per_day(records: Iterable[AttendanceRecord]) -> list[AttendanceRecord]:
    """Keep one record per (student, day): the most recently modified one."""
    latest: dict[tuple[str, object], AttendanceRecord] = {}
    for r in records:
        key = (r.student_id, r.day)
        current = latest.get(key)
        if current is None or r.last_modified > current.last_modified:
            latest[key] = r
    return sorted(latest.values(), key=lambda r: (r.day, r.student_id))


def attendance_percentage(present: int, late: int, total: int) -> int:
    if total <= 0:
        return 0
    value = Decimal(100) * (Decimal(present) + _LATE_WEIGHT * Decimal(late)) / Decimal(total)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def count_by_status(records: Iterable[AttendanceRecord]) -> dict[str, int]:
    counts = {s.value: 0 for s in AttendanceStatus}
    for r in latest_per_day(records):
        counts[r.status.value] += 1
    return counts


def summarize(records: Iterable[AttendanceRecord]) -> AttendanceSummary:
    counts = count_by_status(records)
    present = counts[AttendanceStatus.PRESENT.value]
    absent = counts[AttendanceStatus.ABSENT.value]
    late = counts[AttendanceStatus.LATE.value]
    total = present + absent + late
    return AttendanceSummary(
        present_days=present,
        absent_days=absent,
        late_days=late,
        total_days=total,
        attendance_percentage=attendance_percentage(present, late, total),
    )


def summarize_by_student(records: Iterable[AttendanceRecord]) -> dict[str, AttendanceSummary]:
    grouped: dict[str, list[AttendanceRecord]] = {}
    for r in records:
        grouped.setdefault(r.student_id, []).append(r)
    return {student_id: summarize(items) for student_id, items in grouped.items()}
