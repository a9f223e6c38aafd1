from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.service import AttendanceReader, AttendanceWriter
from .attendance.store_attendance_repository import StoreAttendanceRepository
from .auth.role_gate import RoleGate
from .auth.service import AuthService
from .database.base import DocumentStore
from .database.connection import DatabaseConnection, DBConfig
from .database.memory_store import InMemoryDocumentStore
from .database.mysql_store import MySQLDocumentStore
from .reports.service import ReportService
from .users.service import UserService
from .users.store_user_repository import StoreUserRepository


@dataclass(frozen=True)
class Container:
    store: DocumentStore

    users_repo: StoreUserRepository
    attendance_repo: StoreAttendanceRepository

    role_gate: RoleGate
    auth_service: AuthService
    user_service: UserService
    attendance_writer: AttendanceWriter
    attendance_reader: AttendanceReader
    report_service: ReportService


def build_store(*, backend: str, db_config: Optional[dict] = None) -> DocumentStore:
    backend = (backend or "mysql").lower()
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "mysql":
        if not db_config:
            raise ValueError("DB_CONFIG is required for the mysql store")
        return MySQLDocumentStore(DatabaseConnection.get_instance(DBConfig.from_dict(db_config)))
    raise ValueError(f"Unknown store backend: {backend}")


def build_container(*, store: DocumentStore) -> Container:
    users_repo = StoreUserRepository(store)
    attendance_repo = StoreAttendanceRepository(store)

    role_gate = RoleGate(users_repo)
    auth_service = AuthService(users_repo, role_gate)
    user_service = UserService(users_repo, attendance_repo, role_gate)
    attendance_writer = AttendanceWriter(attendance_repo, users_repo, role_gate)
    attendance_reader = AttendanceReader(attendance_repo, role_gate)
    report_service = ReportService(attendance_reader, users_repo, role_gate)

    return Container(
        store=store,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        role_gate=role_gate,
        auth_service=auth_service,
        user_service=user_service,
        attendance_writer=attendance_writer,
        attendance_reader=attendance_reader,
        report_service=report_service,
    )
