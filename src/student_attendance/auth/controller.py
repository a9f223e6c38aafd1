from __future__ import annotations

from flask import Flask, g, jsonify, session

from ..common.web import json_body, role_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required = role_required(container.role_gate)

    @app.route("/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        # Never carry an old claim into a new login.
        session.clear()

        s = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""), data.get("role", ""))

        session.permanent = bool(data.get("remember_me"))
        session.update(s.to_cookie())

        user = container.users_repo.get_by_id(s.user_id)
        return jsonify({"success": True, "user": user.public_dict()})

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True, "message": "Logged out"})

    @app.route("/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        user = container.users_repo.get_by_id(g.actor.user_id)
        return jsonify({"success": True, "user": user.public_dict()})
