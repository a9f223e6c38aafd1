from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.enums import Role


@dataclass(frozen=True)
class Session:
    """Authenticated principal: a role claim bound to a user id.

    The role here is a claim, not a fact. It is only trusted after the RoleGate
    has re-read it from the user directory.
    """

    user_id: str
    role: Role
    issued_at: datetime

    def to_cookie(self) -> dict:
        return {"user_id": self.user_id, "role": self.role.value, "issued_at": self.issued_at.isoformat()}
