from __future__ import annotations

from datetime import datetime, timezone

import pytest
from werkzeug.security import generate_password_hash

from student_attendance.attendance.service import AttendanceReader, AttendanceWriter
from student_attendance.attendance.store_attendance_repository import StoreAttendanceRepository
from student_attendance.auth.role_gate import RoleGate
from student_attendance.core.enums import Role
from student_attendance.database.memory_store import InMemoryDocumentStore
from student_attendance.users.store_user_repository import StoreUserRepository

PASSWORD = "secret123"


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 4, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def users_repo(store) -> StoreUserRepository:
    return StoreUserRepository(store)


@pytest.fixture
def attendance_repo(store) -> StoreAttendanceRepository:
    return StoreAttendanceRepository(store)


@pytest.fixture
def gate(users_repo, fixed_now) -> RoleGate:
    return RoleGate(users_repo, clock=lambda: fixed_now)


@pytest.fixture
def writer(attendance_repo, users_repo, gate, fixed_now) -> AttendanceWriter:
    return AttendanceWriter(attendance_repo, users_repo, gate, clock=lambda: fixed_now)


@pytest.fixture
def reader(attendance_repo, gate) -> AttendanceReader:
    return AttendanceReader(attendance_repo, gate)


@pytest.fixture
def make_user(users_repo):
    def _make(role: Role, name: str, email: str, *, password: str = PASSWORD, **profile) -> str:
        if role == Role.STUDENT:
            profile.setdefault("enrollment_id", f"ENR-{name}")
            profile.setdefault("course", "B.Sc CS")
        else:
            profile.setdefault("employee_id", f"EMP-{name}")
            profile.setdefault("department", "CS")
        return users_repo.create_user(
            email=email,
            name=name,
            role=role,
            password_hash=generate_password_hash(password),
            profile=profile,
        )

    return _make


@pytest.fixture
def people(make_user) -> dict[str, str]:
    return {
        "hod": make_user(Role.HOD, "Hana", "hod@school.test"),
        "teacher": make_user(Role.TEACHER, "Tom", "teacher@school.test"),
        "alice": make_user(Role.STUDENT, "Alice", "alice@school.test"),
        "bob": make_user(Role.STUDENT, "Bob", "bob@school.test"),
    }


@pytest.fixture
def sessions(gate, people):
    return {
        "hod": gate.authorize(people["hod"], Role.HOD),
        "teacher": gate.authorize(people["teacher"], Role.TEACHER),
        "alice": gate.authorize(people["alice"], Role.STUDENT),
        "bob": gate.authorize(people["bob"], Role.STUDENT),
    }
