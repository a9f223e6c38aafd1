from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.constants import USERS_COLLECTION
from ..core.enums import Role
from ..database.base import Document, DocumentStore
from .model import User
from .repository import UserRepository

PROFILE_FIELDS = ("enrollment_id", "course", "semester", "phone", "employee_id", "department")


class StoreUserRepository(UserRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    @staticmethod
    def _to_user(doc: Document) -> User:
        return User(
            user_id=str(doc["id"]),
            email=doc["email"],
            name=doc["name"],
            role=Role(doc["role"]),
            password_hash=doc.get("password_hash") or "",
            is_active=bool(doc.get("is_active", True)),
            enrollment_id=doc.get("enrollment_id"),
            course=doc.get("course"),
            semester=doc.get("semester"),
            phone=doc.get("phone"),
            employee_id=doc.get("employee_id"),
            department=doc.get("department"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )

    def get_by_id(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        doc = self._store.get(USERS_COLLECTION, str(user_id))
        return self._to_user(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[User]:
        docs = self._store.query(USERS_COLLECTION, [("email", "==", (email or "").strip().lower())], limit=1)
        return self._to_user(docs[0]) if docs else None

    def get_role(self, user_id: str) -> Optional[Role]:
        user = self.get_by_id(user_id)
        return user.role if user else None

    def create_user(self, *, email: str, name: str, role: Role, password_hash: str, profile: Mapping[str, Any]) -> str:
        fields = {
            "email": email.strip().lower(),
            "name": name,
            "role": role.value,
            "password_hash": password_hash,
            "is_active": True,
            "created_at": now_utc(),
        }
        fields.update({k: profile.get(k) for k in PROFILE_FIELDS if profile.get(k) is not None})
        return self._store.insert(USERS_COLLECTION, fields)

    def update_user(self, user_id: str, fields: Mapping[str, Any]) -> bool:
        return self._store.update(USERS_COLLECTION, str(user_id), dict(fields))

    def set_active(self, user_id: str, *, is_active: bool) -> bool:
        return self._store.update(
            USERS_COLLECTION, str(user_id), {"is_active": bool(is_active), "updated_at": now_utc()}
        )

    def delete_by_id(self, user_id: str) -> bool:
        return self._store.delete(USERS_COLLECTION, str(user_id))

    def list_by_role(self, role: Role, *, include_inactive: bool = False) -> Sequence[User]:
        filters = [("role", "==", role.value)]
        if not include_inactive:
            filters.append(("is_active", "==", True))
        docs = self._store.query(USERS_COLLECTION, filters, order_by=["name"])
        return [self._to_user(d) for d in docs]
