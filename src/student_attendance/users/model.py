from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a directory user.

    Plain data object, no store access. Students carry enrollment_id/course,
    teachers and hods carry employee_id/department.
    """

    user_id: str
    email: str
    name: str
    role: Role
    password_hash: str
    is_active: bool = True
    enrollment_id: Optional[str] = None
    course: Optional[str] = None
    semester: Optional[str] = None
    phone: Optional[str] = None
    employee_id: Optional[str] = None
    department: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def public_dict(self) -> dict:
        out = {
            "id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "is_active": self.is_active,
            "phone": self.phone,
        }
        if self.role == Role.STUDENT:
            out.update(enrollment_id=self.enrollment_id, course=self.course, semester=self.semester)
        else:
            out.update(employee_id=self.employee_id, department=self.department)
        return out
