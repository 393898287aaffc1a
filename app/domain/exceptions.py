"""Centralized exception hierarchy for Smart Nyuki.

All domain and service exceptions inherit from :class:`NyukiError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    NyukiError (base, maps to 500)
    ├── ValidationError          (400, bad input from caller)
    ├── AuthenticationError      (401, missing or wrong credentials)
    ├── NotFoundError            (404, entity does not exist or is not yours)
    ├── ConflictError            (409, duplicate / state conflict)
    ├── ServiceError             (500, business-logic failure)
    │   ├── RepositoryError      (500, database / persistence)
    │   └── ExternalServiceError (502, third-party / network)
    └── ConfigurationError       (500, missing / invalid config)
"""

from __future__ import annotations


class NyukiError(Exception):
    """Base exception for all Smart Nyuki application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client unless the exception class opts in).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.

    Subclasses set ``http_status`` and ``code``; both end up in the JSON error
    envelope rendered by ``app.utils.http``.
    """

    http_status: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(NyukiError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400
    code: str = "VALIDATION_ERROR"


class AuthenticationError(NyukiError):
    """Caller is not logged in or supplied bad credentials (HTTP 401)."""

    http_status: int = 401
    code: str = "UNAUTHORIZED"


class NotFoundError(NyukiError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404
    code: str = "NOT_FOUND"


class ConflictError(NyukiError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409
    code: str = "CONFLICT"


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(NyukiError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500
    code: str = "SERVICE_ERROR"


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500
    code: str = "REPOSITORY_ERROR"


class ExternalServiceError(ServiceError):
    """Third-party or network dependency failure (HTTP 502)."""

    http_status: int = 502
    code: str = "EXTERNAL_SERVICE_ERROR"


class ConfigurationError(NyukiError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
    code: str = "CONFIGURATION_ERROR"
