from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from flask import current_app, jsonify, request

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    ExternalServiceError,
    NotFoundError,
    StaleRecordError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def to_json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def ok(message: str = "", status: int = 200, **data):
    body = {"success": True, "message": message}
    body.update(data)
    return jsonify(body), status


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def error_response(e: Exception, failure_message: str):
    """Map an exception raised by a service call to a JSON error response.

    Domain errors carry a user-facing message. Anything else is logged and
    answered with ``failure_message``.
    """

    if isinstance(e, StaleRecordError):
        return fail(str(e), 409)
    if isinstance(e, ValidationError):
        return fail(str(e), 400)
    if isinstance(e, AuthenticationError):
        return fail(str(e), 401)
    if isinstance(e, AuthorizationError):
        return fail(str(e), 403)
    if isinstance(e, NotFoundError):
        return fail(str(e), 404)
    if isinstance(e, DomainError):
        return fail(str(e), 400)

    if isinstance(e, ExternalServiceError):
        logger.error("%s: %s", failure_message, e)
        return fail(failure_message, 502)

    logger.exception("%s", failure_message)
    if bool(current_app.config.get("DEBUG", False)):
        return fail(f"{failure_message} ({e})", 500)
    return fail(failure_message, 500)


def request_data() -> dict:
    """JSON body, falling back to form fields."""

    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()
