from __future__ import annotations

import importlib

from dotenv import load_dotenv

from student_attendance.config import get_settings_module
from student_attendance.container import build_store
from student_attendance.database.bootstrap import ensure_demo_users
from student_attendance.users.store_user_repository import StoreUserRepository


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    store = build_store(backend="mysql", db_config=db_config)
    created = ensure_demo_users(StoreUserRepository(store))

    print(
        "OK: Seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(new users: {', '.join(created) or 'none'})"
    )


if __name__ == "__main__":
    main()
