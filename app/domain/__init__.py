"""
Domain Package
==============
Exception hierarchy shared by services, workers and blueprints.
"""

from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    NyukiError,
    RepositoryError,
    ServiceError,
    ValidationError,
)

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "ConflictError",
    "ExternalServiceError",
    "NotFoundError",
    "NyukiError",
    "RepositoryError",
    "ServiceError",
    "ValidationError",
]
