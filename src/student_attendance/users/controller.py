from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.web import json_body, role_required
from ..container import Container
from ..core.enums import STAFF_ROLES, Role


def register(app: Flask, container: Container) -> None:
    login_required = role_required(container.role_gate)
    staff_required = role_required(container.role_gate, *STAFF_ROLES)
    hod_required = role_required(container.role_gate, Role.HOD)

    @app.route("/users/students", methods=["GET"], endpoint="list_students")
    @staff_required
    def list_students():
        include_inactive = request.args.get("include_inactive") in {"1", "true"}
        students = container.user_service.list_students(g.actor, include_inactive=include_inactive)
        return jsonify({"success": True, "students": [s.public_dict() for s in students]})

    @app.route("/users", methods=["POST"], endpoint="add_user")
    @hod_required
    def add_user():
        data = dict(json_body())
        user_id = container.user_service.create_account(
            g.actor,
            role=data.pop("role", ""),
            name=data.pop("name", ""),
            email=data.pop("email", ""),
            password=data.pop("password", ""),
            profile=data,
        )
        return jsonify({"success": True, "id": user_id}), 201

    @app.route("/users/<user_id>", methods=["GET"], endpoint="get_user")
    @login_required
    def get_user(user_id: str):
        user = container.user_service.get_user(g.actor, user_id)
        return jsonify({"success": True, "user": user.public_dict()})

    @app.route("/users/<user_id>", methods=["PATCH"], endpoint="edit_user")
    @hod_required
    def edit_user(user_id: str):
        user = container.user_service.update_profile(g.actor, user_id, json_body())
        return jsonify({"success": True, "user": user.public_dict()})

    @app.route("/users/<user_id>/deactivate", methods=["POST"], endpoint="deactivate_user")
    @hod_required
    def deactivate_user(user_id: str):
        container.user_service.deactivate_user(g.actor, user_id)
        return jsonify({"success": True})

    @app.route("/users/<user_id>", methods=["DELETE"], endpoint="delete_user")
    @hod_required
    def delete_user(user_id: str):
        container.user_service.delete_user(g.actor, user_id)
        return jsonify({"success": True})
