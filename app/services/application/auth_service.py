"""
User Authentication Service
===========================
Manages user accounts with bcrypt hashing and audit logging.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import bcrypt

from app.domain.exceptions import ConflictError, ValidationError
from infrastructure.database.repositories.auth import AuthRepository
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8


@dataclass
class UserAuthManager:
    """
    Manages user authentication with bcrypt hashing and audit logging.
    """

    database_handler: Any
    audit_logger: Optional[AuditLogger] = None
    # Optional injection for tests/composition; lazily initialized from database_handler.
    auth_repo: Optional[AuthRepository] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.auth_repo is None and self.database_handler is not None:
            self.auth_repo = AuthRepository(self.database_handler)

    def _repo(self) -> AuthRepository:
        if self.auth_repo is None:
            raise RuntimeError("AuthRepository is not configured")
        return self.auth_repo

    def _audit(self, actor: str, action: str, outcome: str, **meta: Any) -> None:
        if self.audit_logger:
            self.audit_logger.log_event(actor=actor, action=action, resource="user", outcome=outcome, **meta)

    def hash_password(self, password: str) -> str:
        """Hash the provided password using bcrypt."""
        salt = bcrypt.gensalt()
        hashed_password = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed_password.decode("utf-8")

    def check_password(self, stored_password: str, provided_password: str) -> bool:
        """Validate a plaintext password against the stored hash."""
        return bcrypt.checkpw(provided_password.encode("utf-8"), stored_password.encode("utf-8"))

    def register_user(self, username: str, password: str) -> int:
        """Create an account and return the new user id.

        Raises:
            ValidationError: username or password does not meet the policy.
            ConflictError: the username is already taken.
        """
        username = (username or "").strip()
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise ValidationError(
                f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
            )
        if len(password or "") < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

        password_hash = self.hash_password(password)
        try:
            user_id = self._repo().create_user(username, password_hash)
        except sqlite3.IntegrityError:
            self._audit(username, "register", "conflict")
            raise ConflictError("Username is already taken") from None

        if not user_id:
            logger.error("Error registering user '%s': repository rejected create", username)
            self._audit(username, "register", "error", error="create_failed")
            raise ConflictError("Unable to register user")

        logger.info("User '%s' registered successfully.", username)
        self._audit(username, "register", "success", user_id=user_id)
        return user_id

    def authenticate_user(self, username: str, password: str) -> Optional[int]:
        """Return the user id when the credentials match, otherwise None."""
        user = self._repo().get_user_auth_by_username(username or "")
        if not user:
            logger.warning("Authentication failed for user '%s': user not found.", username)
            self._audit(username, "login", "not_found")
            return None

        if not self.check_password(user["password_hash"], password or ""):
            logger.warning("Authentication failed for user '%s': invalid credentials.", username)
            self._audit(username, "login", "denied")
            return None

        logger.info("User '%s' authenticated successfully.", username)
        self._audit(username, "login", "success", user_id=user["id"])
        return int(user["id"])

    def get_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        return self._repo().get_user_by_id(user_id)

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        user = self._repo().get_user_auth_by_username(username or "")
        if not user:
            return None
        return {"id": user["id"], "username": user["username"]}
