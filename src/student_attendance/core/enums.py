from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    STUDENT = "student"
    TEACHER = "teacher"
    HOD = "hod"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored per student and day."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


STAFF_ROLES = frozenset({Role.TEACHER, Role.HOD})
