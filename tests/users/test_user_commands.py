from __future__ import annotations

from student_attendance.container import build_container
from student_attendance.core.enums import Role
from student_attendance.database.memory_store import InMemoryDocumentStore
from student_attendance.main import create_app

ARGS = [
    "create-hod",
    "--name", "Head",
    "--email", "Head@School.test",
    "--employee-id", "E1",
    "--department", "CS",
    "--password", "pass1234",
]


def _app():
    container = build_container(store=InMemoryDocumentStore())
    return create_app("student_attendance.config.testing", container=container), container


def test_create_hod_command_creates_first_hod():
    app, container = _app()

    result = app.test_cli_runner().invoke(args=ARGS)

    assert result.exit_code == 0, result.output
    assert "OK: Created hod head@school.test" in result.output
    hod = container.users_repo.get_by_email("head@school.test")
    assert hod.role == Role.HOD
    assert container.auth_service.authenticate("head@school.test", "pass1234", "hod").user_id == hod.user_id


def test_create_hod_command_refuses_second_hod():
    app, container = _app()
    runner = app.test_cli_runner()
    runner.invoke(args=ARGS)

    result = runner.invoke(args=ARGS[:4] + ["--email", "other@school.test"] + ARGS[6:])

    assert result.exit_code == 1
    assert "already exists" in result.output
    assert container.users_repo.get_by_email("other@school.test") is None
