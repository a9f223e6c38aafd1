from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from student_attendance.attendance.model import AttendanceRecord
from student_attendance.core.enums import AttendanceStatus
from student_attendance.reports.aggregation import (
    attendance_percentage,
    count_by_status,
    latest_per_day,
    summarize,
    summarize_by_student,
)

T0 = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


def _rec(day: int, status: str, *, student_id: str = "1", created_at: datetime = T0, updated_at=None) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=f"{student_id}-{day}-{status}",
        student_id=student_id,
        day=date(2024, 3, day),
        status=AttendanceStatus(status),
        created_by="t",
        created_at=created_at,
        updated_at=updated_at,
    )


def test_empty_input_is_zero():
    s = summarize([])
    assert s.total_days == 0
    assert s.attendance_percentage == 0


def test_counts_and_percentage():
    s = summarize([_rec(1, "present"), _rec(2, "present"), _rec(3, "absent")])
    assert (s.present_days, s.absent_days, s.late_days, s.total_days) == (2, 1, 0, 3)
    assert s.attendance_percentage == 67


def test_one_more_present_day_raises_percentage():
    s = summarize([_rec(1, "present"), _rec(2, "present"), _rec(3, "absent"), _rec(4, "present")])
    assert s.attendance_percentage == 75


def test_late_counts_half():
    assert summarize([_rec(1, "present"), _rec(2, "late")]).attendance_percentage == 75
    assert summarize([_rec(1, "late"), _rec(2, "absent")]).attendance_percentage == 25
    assert summarize([_rec(1, "late")]).attendance_percentage == 50


def test_rounds_half_up():
    # 100 * 0.5 / 4 = 12.5
    assert attendance_percentage(present=0, late=1, total=4) == 13
    assert attendance_percentage(present=0, late=0, total=0) == 0
    assert attendance_percentage(present=1, late=0, total=8) == 13


def test_duplicate_day_keeps_latest_record():
    older = _rec(1, "present")
    newer = _rec(1, "absent", updated_at=T0 + timedelta(hours=2))

    assert latest_per_day([newer, older]) == [newer]
    s = summarize([older, newer])
    assert (s.absent_days, s.total_days, s.attendance_percentage) == (1, 1, 0)


def test_summarize_by_student():
    out = summarize_by_student(
        [_rec(1, "present", student_id="a"), _rec(2, "absent", student_id="a"), _rec(1, "late", student_id="b")]
    )
    assert out["a"].attendance_percentage == 50
    assert out["b"].late_days == 1
    assert out["b"].attendance_percentage == 50


def test_count_by_status_lists_every_status():
    assert count_by_status([_rec(1, "late")]) == {"present": 0, "absent": 0, "late": 1}
