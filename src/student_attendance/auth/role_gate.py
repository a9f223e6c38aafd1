"""Role gate: the authorization check that a session's role equals the stored role.

Every login goes through `authorize`, every restored session and every
privileged call goes through `revalidate`/`require`. Nothing here trusts a
role label that did not come from the user directory during the same call.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import parse_role
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..users.repository import UserRepository
from .session import Session

logger = logging.getLogger(__name__)


class RoleGate:
    def __init__(self, users: UserRepository, *, clock: Optional[Callable] = None):
        self._users = users
        self._clock = clock or now_utc

    def _authoritative_role(self, user_id: str) -> Role:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not user.is_active:
            logger.warning("Rejected inactive user %s", user_id)
            raise AuthorizationError("Account is disabled")
        return user.role

    def authorize(self, identity: str, requested_role) -> Session:
        requested = parse_role(requested_role)
        actual = self._authoritative_role(identity)
        if actual != requested:
            logger.warning("Role mismatch for user %s: requested=%s actual=%s", identity, requested.value, actual.value)
            raise AuthorizationError(f"Account is not registered as {requested.value}")
        return Session(user_id=str(identity), role=actual, issued_at=self._clock())

    def revalidate(self, session: Optional[Session]) -> Session:
        if session is None:
            raise AuthorizationError("Not logged in")
        try:
            actual = self._authoritative_role(session.user_id)
        except NotFoundError:
            raise AuthorizationError("Session user no longer exists")
        if actual != session.role:
            logger.warning(
                "Stale role claim for user %s: claimed=%s actual=%s", session.user_id, session.role.value, actual.value
            )
            raise AuthorizationError("Session role is no longer valid")
        return session

    def require(self, session: Optional[Session], *roles: Role) -> Session:
        session = self.revalidate(session)
        if roles and session.role not in roles:
            raise AuthorizationError("You do not have permission for this action")
        return session
