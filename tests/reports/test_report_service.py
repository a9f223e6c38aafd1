from __future__ import annotations

from datetime import date

import pytest

from student_attendance.core.enums import Role
from student_attendance.core.exceptions import AuthorizationError, NotFoundError
from student_attendance.reports.service import ReportService


@pytest.fixture
def reports(reader, users_repo, gate) -> ReportService:
    return ReportService(reader, users_repo, gate)


@pytest.fixture
def marked(writer, people, sessions):
    t = sessions["teacher"]
    for day, status in (("2024-03-04", "present"), ("2024-03-05", "present"), ("2024-03-06", "absent")):
        writer.mark_attendance(t, student_id=people["alice"], day=day, status=status)
    writer.mark_attendance(t, student_id=people["bob"], day="2024-03-04", status="late")
    # Outside March
    writer.mark_attendance(t, student_id=people["alice"], day="2024-02-28", status="absent")


def test_monthly_summary_for_student(reports, people, sessions, marked):
    report = reports.monthly_summary(sessions["alice"], year=2024, month=3)

    assert report.student_id == people["alice"]
    assert (report.start, report.end) == (date(2024, 3, 1), date(2024, 3, 31))
    assert report.summary.total_days == 3
    assert report.summary.attendance_percentage == 67
    assert report.to_dict()["records"][0]["date"] == "2024-03-04"


def test_student_summary_by_teacher(reports, people, sessions, marked):
    report = reports.student_summary(
        sessions["teacher"], student_id=people["bob"], date_from="2024-03-01", date_to="2024-03-31"
    )
    assert report.name == "Bob"
    assert report.summary.late_days == 1
    assert report.summary.attendance_percentage == 50


def test_student_cannot_see_other_summary(reports, people, sessions, marked):
    with pytest.raises(AuthorizationError):
        reports.student_summary(sessions["alice"], student_id=people["bob"], date_from="2024-03-01", date_to="2024-03-31")


def test_summary_for_non_student_is_not_found(reports, people, sessions):
    with pytest.raises(NotFoundError):
        reports.student_summary(
            sessions["hod"], student_id=people["teacher"], date_from="2024-03-01", date_to="2024-03-31"
        )


def test_class_report_lists_every_student(reports, make_user, sessions, marked):
    make_user(Role.STUDENT, "Carol", "carol@school.test")

    data = reports.class_report(sessions["hod"], date_from="2024-03-01", date_to="2024-03-31")

    assert [r["name"] for r in data.rows] == ["Alice", "Bob", "Carol"]
    carol = data.rows[2]
    assert carol["total_days"] == 0
    assert carol["attendance_percentage"] == 0
    assert data.summary["students"] == 3
    assert data.summary["total_days"] == 4


def test_class_report_is_staff_only(reports, sessions):
    with pytest.raises(AuthorizationError):
        reports.class_report(sessions["alice"], date_from="2024-03-01", date_to="2024-03-31")


def test_daily_counts(reports, people, sessions, marked):
    data = reports.daily_counts(sessions["teacher"], day="2024-03-05")

    assert data.summary == {"date": "2024-03-05", "present": 1, "absent": 0, "late": 0, "unmarked": 1}
    by_name = {r["name"]: r["status"] for r in data.rows}
    assert by_name == {"Alice": "present", "Bob": None}


def test_class_report_totals_match_listed_students(reports, writer, users_repo, people, sessions):
    t = sessions["teacher"]
    writer.mark_attendance(t, student_id=people["alice"], day="2024-03-04", status="present")
    writer.mark_attendance(t, student_id=people["bob"], day="2024-03-04", status="absent")
    users_repo.set_active(people["bob"], is_active=False)

    data = reports.class_report(sessions["hod"], date_from="2024-03-01", date_to="2024-03-31")

    assert [(r["name"], r["total_days"]) for r in data.rows] == [("Alice", 1)]
    assert data.summary["students"] == 1
    assert data.summary["total_days"] == sum(r["total_days"] for r in data.rows)
    assert data.summary["absent_days"] == 0
    assert data.summary["attendance_percentage"] == 100


def test_daily_counts_skip_inactive_students(reports, writer, users_repo, people, sessions):
    t = sessions["teacher"]
    writer.mark_attendance(t, student_id=people["alice"], day="2024-03-04", status="late")
    writer.mark_attendance(t, student_id=people["bob"], day="2024-03-04", status="absent")
    users_repo.set_active(people["bob"], is_active=False)

    data = reports.daily_counts(sessions["teacher"], day="2024-03-04")

    assert data.summary == {"date": "2024-03-04", "present": 0, "absent": 0, "late": 1, "unmarked": 0}
