from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from werkzeug.security import generate_password_hash

from ..attendance.repository import AttendanceRepository
from ..auth.role_gate import RoleGate
from ..auth.session import Session
from ..common.datetime_utils import now_utc
from ..common.validators import parse_role, require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import STAFF_ROLES, Role
from ..core.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

STUDENT_FIELDS = ("enrollment_id", "course", "semester", "phone")
STAFF_FIELDS = ("employee_id", "department", "phone")


class UserService:
    """Use case: manage directory users (hod) and list students (teacher/hod)."""

    def __init__(self, users: UserRepository, attendance: AttendanceRepository, role_gate: RoleGate):
        self._users = users
        self._attendance = attendance
        self._gate = role_gate

    @staticmethod
    def _profile_for(role: Role, data: Mapping[str, Any]) -> dict:
        allowed = STUDENT_FIELDS if role == Role.STUDENT else STAFF_FIELDS
        profile = {k: (str(data[k]).strip() or None) for k in allowed if data.get(k) is not None}

        if role == Role.STUDENT:
            profile["enrollment_id"] = require_non_empty(profile.get("enrollment_id"), "Enrollment ID")
            profile["course"] = require_non_empty(profile.get("course"), "Course")
        else:
            profile["employee_id"] = require_non_empty(profile.get("employee_id"), "Employee ID")
            profile["department"] = require_non_empty(profile.get("department"), "Department")
        return profile

    def _create(self, *, role: Role, name: str, email: str, password: str, profile: Mapping[str, Any]) -> str:
        name = require_non_empty(name, "Name")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        profile = self._profile_for(role, profile)

        if self._users.get_by_email(email):
            raise ValidationError("Email is already registered")

        try:
            user_id = self._users.create_user(
                email=email,
                name=name,
                role=role,
                password_hash=generate_password_hash(password),
                profile=profile,
            )
        except DuplicateKeyError:
            # Lost a race with another registration of the same email.
            raise ValidationError("Email is already registered")
        logger.info("Created %s account %s (%s)", role.value, user_id, email)
        return user_id

    def create_account(
        self,
        actor: Session,
        *,
        role,
        name: str,
        email: str,
        password: str,
        profile: Optional[Mapping[str, Any]] = None,
    ) -> str:
        self._gate.require(actor, Role.HOD)
        return self._create(role=parse_role(role), name=name, email=email, password=password, profile=profile or {})

    def create_student(self, actor: Session, *, name: str, email: str, password: str, **profile: Any) -> str:
        return self.create_account(actor, role=Role.STUDENT, name=name, email=email, password=password, profile=profile)

    def create_teacher(self, actor: Session, *, name: str, email: str, password: str, **profile: Any) -> str:
        return self.create_account(actor, role=Role.TEACHER, name=name, email=email, password=password, profile=profile)

    def create_hod(self, actor: Session, *, name: str, email: str, password: str, **profile: Any) -> str:
        return self.create_account(actor, role=Role.HOD, name=name, email=email, password=password, profile=profile)

    def bootstrap_hod(self, *, name: str, email: str, password: str, **profile: Any) -> str:
        """Create the first department head. Refused once any hod exists."""
        if self._users.list_by_role(Role.HOD, include_inactive=True):
            raise ValidationError("A department head already exists")
        return self._create(role=Role.HOD, name=name, email=email, password=password, profile=profile)

    def get_user(self, actor: Session, user_id: str) -> User:
        actor = self._gate.require(actor)
        if actor.role == Role.STUDENT and actor.user_id != str(user_id):
            raise NotFoundError("User not found")
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, actor: Session, user_id: str, changes: Mapping[str, Any]) -> User:
        self._gate.require(actor, Role.HOD)
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        if "role" in changes and parse_role(changes["role"]) != user.role:
            raise ValidationError("Role cannot be changed from the profile")

        allowed = STUDENT_FIELDS if user.role == Role.STUDENT else STAFF_FIELDS
        fields: dict[str, Any] = {}
        if "name" in changes:
            fields["name"] = require_non_empty(changes["name"], "Name")
        for k in allowed:
            if k in changes:
                value = changes[k]
                fields[k] = str(value).strip() if value is not None and str(value).strip() else None

        unknown = set(changes) - set(allowed) - {"name", "role"}
        if unknown:
            raise ValidationError(f"Unknown profile field(s): {', '.join(sorted(unknown))}")
        if not fields:
            raise ValidationError("Nothing to update")

        fields["updated_at"] = now_utc()
        if not self._users.update_user(user.user_id, fields):
            raise NotFoundError("User not found")
        logger.info("Profile of user %s updated by %s", user.user_id, actor.user_id)
        return self._users.get_by_id(user.user_id)

    def list_students(self, actor: Session, *, include_inactive: bool = False) -> Sequence[User]:
        self._gate.require(actor, *STAFF_ROLES)
        return self._users.list_by_role(Role.STUDENT, include_inactive=include_inactive)

    def deactivate_user(self, actor: Session, user_id: str) -> None:
        actor = self._gate.require(actor, Role.HOD)
        if actor.user_id == str(user_id):
            raise ValidationError("You cannot deactivate your own account")
        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")
        self._users.set_active(user_id, is_active=False)
        logger.info("User %s deactivated by %s", user_id, actor.user_id)

    def delete_user(self, actor: Session, user_id: str) -> None:
        """Delete a user that no attendance record refers to.

        Records are never cascade-deleted; users with history are deactivated instead.
        """
        actor = self._gate.require(actor, Role.HOD)
        if actor.user_id == str(user_id):
            raise ValidationError("You cannot delete your own account")

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if self._attendance.has_references(user.user_id):
            raise ValidationError("User has attendance history; deactivate the account instead")

        if not self._users.delete_by_id(user.user_id):
            raise NotFoundError("User not found")
        logger.info("User %s deleted by %s", user.user_id, actor.user_id)
