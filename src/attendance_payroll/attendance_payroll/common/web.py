"""Flask glue shared by the JSON controllers.

Identity comes from the signed Flask session (user_id, role, company_id), which
the surrounding application populates at login.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import InternalServerError

from ..core.enums import Role
from ..core.exceptions import (
    AlreadyPunchedIn,
    CannotApproveWithoutPunchOut,
    DomainError,
    InvalidTransition,
    NoOpenPunch,
    RecordNotFound,
    StorageError,
    ValidationError,
)
from .datetime_utils import now_local

logger = logging.getLogger(__name__)

_CONFLICTS = (AlreadyPunchedIn, NoOpenPunch, InvalidTransition, CannotApproveWithoutPunchOut)


def error_response(code: str, message: str, status: int):
    return jsonify({"success": False, "code": code, "message": message}), status


def _role_required(role: Optional[Role]):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return error_response("UNAUTHORIZED", "Please sign in to continue.", 401)
            if role is not None and session.get("role") != role.value:
                return error_response("FORBIDDEN", "You do not have access to this resource.", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


login_required = _role_required(None)
admin_required = _role_required(Role.ADMIN)
staff_required = _role_required(Role.STAFF)


def current_user_id() -> int:
    return int(session["user_id"])


def current_company_id() -> int:
    return int(session["company_id"])


def company_today(container) -> date:
    """Calendar date in the signed-in user's company time zone."""
    return now_local(container.company_repo.get_settings(current_company_id()).timezone).date()


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        if isinstance(exc, RecordNotFound):
            status = 404
        elif isinstance(exc, _CONFLICTS):
            status = 409
        else:
            status = 400
        return error_response(exc.code, exc.message, status)

    @app.errorhandler(StorageError)
    def handle_storage_error(exc: StorageError):
        logger.error("[api] storage failure on %s %s: %s", request.method, request.path, exc)
        return error_response("INTERNAL_ERROR", "Something went wrong. Please try again.", 500)

    @app.errorhandler(InternalServerError)
    def handle_unexpected(exc: InternalServerError):
        return error_response("INTERNAL_ERROR", "Something went wrong. Please try again.", 500)
