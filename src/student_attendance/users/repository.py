from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """User directory interface.

    Note (DIP): the service layer depends on this interface, not on a concrete store.
    It is the authoritative source of roles for the RoleGate.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_role(self, user_id: str) -> Optional[Role]:
        raise NotImplementedError

    def create_user(self, *, email: str, name: str, role: Role, password_hash: str, profile: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def update_user(self, user_id: str, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: str, *, is_active: bool) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: str) -> bool:
        raise NotImplementedError

    def list_by_role(self, role: Role, *, include_inactive: bool = False) -> Sequence[User]:
        raise NotImplementedError
