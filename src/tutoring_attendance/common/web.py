from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AlreadyFinalizedError,
    AuthenticationError,
    AuthorizationError,
    ConcurrencyConflictError,
    DomainError,
    LessonConflictError,
    NotFoundError,
    SessionFinalizedError,
    SmsDeliveryError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (AlreadyFinalizedError, 409),
    (SessionFinalizedError, 409),
    (ConcurrencyConflictError, 409),
    (SmsDeliveryError, 502),
)


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("Please sign in to continue", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("Please sign in to continue", 401)
        if session.get("role") != Role.ADMIN.value:
            return error_response("You do not have permission", 403)
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role"))


def request_data() -> dict:
    """JSON body if present, else form fields."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


def int_field(data: dict, name: str, *, required: bool = True):
    value = data.get(name)
    if value is None or str(value).strip() == "":
        if required:
            raise ValidationError(f"{name} is required")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a whole number")


def optional_int_arg(name: str):
    """Integer query-string argument, or None when absent or blank."""
    return int_field(request.args, name, required=False)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = 400
        for error_type, code in _STATUS_BY_ERROR:
            if isinstance(e, error_type):
                status = code
                break

        if status >= 500:
            logger.warning("%s %s failed: %s", request.method, request.path, e)

        body = {"success": False, "message": str(e)}
        if isinstance(e, LessonConflictError):
            body["conflict"] = e.conflict.to_dict()
        return jsonify(body), status

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        # Flask renders its own HTTP errors (unknown routes, 405, ...).
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if app.config.get("DEBUG"):
            return error_response(f"Internal error: {e}", 500)
        return error_response("Internal error", 500)
