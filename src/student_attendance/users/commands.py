from __future__ import annotations

import click
from flask import Flask

from ..container import Container
from ..core.exceptions import DomainError


def register_commands(app: Flask, container: Container) -> None:
    """Register user management CLI commands (`flask create-hod`)."""

    @app.cli.command("create-hod")
    @click.option("--name", required=True)
    @click.option("--email", required=True)
    @click.option("--employee-id", required=True)
    @click.option("--department", required=True)
    @click.option("--phone", default=None)
    @click.password_option()
    def create_hod_command(name, email, employee_id, department, phone, password):
        """Create the first department head. Refused once any hod exists."""
        try:
            user_id = container.user_service.bootstrap_hod(
                name=name,
                email=email,
                password=password,
                employee_id=employee_id,
                department=department,
                phone=phone,
            )
        except DomainError as e:
            raise click.ClickException(str(e))
        click.echo(f"OK: Created hod {email.strip().lower()} (id={user_id})")
