from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from werkzeug.security import generate_password_hash

from ..core.enums import Role
from ..users.repository import UserRepository
from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().with_name("schema.sql")

# email, password, name, role, profile
DEMO_USERS = (
    ("hod@example.edu", "hod12345", "Demo Head", Role.HOD, {"employee_id": "EMP-001", "department": "Computer Science"}),
    ("teacher@example.edu", "teacher123", "Demo Teacher", Role.TEACHER, {"employee_id": "EMP-002", "department": "Computer Science"}),
    ("student@example.edu", "student123", "Demo Student", Role.STUDENT, {"enrollment_id": "ENR-001", "course": "B.Sc CS", "semester": "1"}),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable whatever the configured database name is.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal splitter: ';' inside quotes does not end a statement.
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))
    name = conn.config.database
    if not re.fullmatch(r"[A-Za-z0-9_]+", name):
        raise ValueError(f"Unsupported database name: {name!r}")

    cnx = conn.connect(with_database=False)
    try:
        cur = cnx.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        cnx.commit()
    finally:
        cnx.close()


def apply_schema(db_config: dict, *, schema_path: Optional[str | Path] = None) -> None:
    ensure_database_exists(db_config)

    path = Path(schema_path) if schema_path else SCHEMA_PATH
    sql = _strip_comments(_strip_create_db_and_use(path.read_text(encoding="utf-8")))

    cnx = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = cnx.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        cnx.commit()
    finally:
        cnx.close()
    logger.info("Schema applied from %s", path.name)


def list_tables(db_config: dict) -> list[str]:
    cnx = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = cnx.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        cnx.close()


def ensure_demo_users(users: UserRepository) -> list[str]:
    """Create the demo hod/teacher/student accounts that are missing. Returns the created emails."""
    created: list[str] = []
    for email, password, name, role, profile in DEMO_USERS:
        if users.get_by_email(email):
            continue
        users.create_user(
            email=email,
            name=name,
            role=role,
            password_hash=generate_password_hash(password),
            profile=profile,
        )
        created.append(email)

    if created:
        logger.info("Demo users created: %s", ", ".join(created))
    return created
