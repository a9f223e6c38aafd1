from __future__ import annotations

import logging

from werkzeug.security import check_password_hash

from ..common.validators import parse_role, require_non_empty
from ..core.exceptions import AuthenticationError
from ..users.repository import UserRepository
from .role_gate import RoleGate
from .session import Session

logger = logging.getLogger(__name__)


class AuthService:
    """Use case: authenticate user (login) and open a role-checked session."""

    def __init__(self, users: UserRepository, role_gate: RoleGate):
        self._users = users
        self._gate = role_gate

    def authenticate(self, email: str, password: str, requested_role) -> Session:
        email = require_non_empty(email, "Email").lower()
        role = parse_role(requested_role)

        user = self._users.get_by_email(email)
        if not user:
            raise AuthenticationError("Wrong email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except (TypeError, ValueError):
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Wrong email or password")

        session = self._gate.authorize(user.user_id, role)
        logger.info("User %s logged in as %s", user.user_id, role.value)
        return session
