"""
JSON envelope helpers shared by every blueprint.

Success::

    {"ok": true, "data": ..., "error": null}

Failure::

    {"ok": false, "data": null, "message": "...",
     "error": {"message": "...", "timestamp": "...", "code": "...", ...details},
     "details": {...}}

``details`` is repeated at the top level only when present.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable

from flask import Response, jsonify

from app.utils.time import iso_now

if TYPE_CHECKING:
    from pydantic import ValidationError as PydanticValidationError

    from app.domain.exceptions import NyukiError

_log = logging.getLogger(__name__)

# Messages sent instead of the exception text for server-side failures
_GENERIC_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    401: "Authentication required",
    404: "Resource not found",
    409: "Conflict",
    413: "Request payload too large",
    500: "An internal error occurred",
    502: "Upstream service unavailable",
}


def success_response(
    data: dict | list | None = None,
    status: int = 200,
    *,
    message: str | None = None,
) -> Response:
    payload: dict[str, Any] = {"ok": True, "data": data, "error": None}
    if message is not None:
        payload["message"] = message
    response = jsonify(payload)
    response.status_code = status
    return response


def error_response(
    message: str,
    status: int = 500,
    *,
    code: str | None = None,
    details: dict | None = None,
) -> Response:
    error: dict[str, Any] = {"message": message, "timestamp": iso_now()}
    if code:
        error["code"] = code
    if details:
        error.update(details)

    body: dict[str, Any] = {"ok": False, "data": None, "error": error, "message": message}
    if details:
        body["details"] = details
    response = jsonify(body)
    response.status_code = status
    return response


def safe_error(exc: BaseException, status: int = 500, *, context: str = "") -> Response:
    """Log ``exc`` with its traceback and answer with a generic message.

    ``context`` names the operation in the log line, e.g. ``"creating apiary"``.
    """
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    return error_response(_GENERIC_MESSAGES.get(status, _GENERIC_MESSAGES[500]), status)


def domain_error_response(exc: NyukiError, context: str = "") -> Response:
    """Render a :class:`~app.domain.exceptions.NyukiError`.

    Client errors (4xx) carry the exception text, its ``code`` and any
    ``detail``; server errors are logged and answered generically.
    """
    status = exc.http_status
    if status >= 500:
        return safe_error(exc, status, context=context or type(exc).__name__)
    return error_response(
        str(exc) or _GENERIC_MESSAGES.get(status, "Request failed"),
        status,
        code=exc.code,
        details=exc.detail or None,
    )


def validation_error_response(
    exc: PydanticValidationError,
    message: str = "Invalid request payload",
) -> Response:
    """400 listing the pydantic errors under ``details.errors``."""
    errors = exc.errors(include_url=False, include_context=False)
    return error_response(message, 400, code="VALIDATION_ERROR", details={"errors": errors})


def safe_route(error_message: str = "An internal error occurred", *, error_status: int = 500) -> Callable:
    """Wrap a route so domain exceptions become JSON errors.

    Usage::

        @alerts_api.get("/count")
        @safe_route("Failed to count alerts")
        def count_alerts():
            ...

    Any other exception is logged under ``error_message`` and answered
    with ``error_status``.
    """
    from app.domain.exceptions import NyukiError

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except NyukiError as exc:
                return domain_error_response(exc, error_message)
            except Exception as exc:
                return safe_error(exc, error_status, context=error_message)

        return wrapper

    return decorator
