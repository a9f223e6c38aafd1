from __future__ import annotations

import logging
from datetime import datetime
from functools import wraps
from typing import Optional

from flask import Flask, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..auth.role_gate import RoleGate
from ..auth.session import Session
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (StoreError, 503),
)


def session_from_cookie() -> Optional[Session]:
    """Rebuild the role claim kept in the signed cookie. Not trusted until revalidated."""
    user_id = session.get("user_id")
    role = session.get("role")
    if not user_id or not role:
        return None
    try:
        issued_at = datetime.fromisoformat(session.get("issued_at") or "")
    except ValueError:
        return None
    try:
        return Session(user_id=str(user_id), role=Role(role), issued_at=issued_at)
    except ValueError:
        return None


def role_required(role_gate: RoleGate, *roles: Role):
    """Revalidate the cookie's role claim against the user directory on every request."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            claim = session_from_cookie()
            if claim is None:
                return json_error("Please log in to continue", 401)
            try:
                actor = role_gate.revalidate(claim)
            except AuthorizationError as e:
                # Stale or revoked claim: drop the whole session.
                session.clear()
                return json_error(str(e), 403)
            if roles and actor.role not in roles:
                return json_error("You do not have permission for this action", 403)
            g.actor = actor
            return view(*args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def json_error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        for cls, status in _STATUS_BY_ERROR:
            if isinstance(e, cls):
                if status == 503:
                    logger.error("Store failure on %s %s: %s", request.method, request.path, e)
                    return json_error("Storage is unavailable, try again later", status)
                return json_error(str(e), status)
        return json_error(str(e), 400)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return json_error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if bool(app.config.get("DEBUG", False)):
            return json_error(f"Internal error: {e}", 500)
        return json_error("Internal error", 500)
