"""
Auth Repository
===============

Repository for user accounts. Keeps the Users SQL in the infrastructure
layer so UserAuthManager only deals with hashing and policy.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class AuthRepository:
    """Repository for user-authentication database operations."""

    def __init__(self, backend: Any) -> None:
        """
        Args:
            backend: Database handler exposing ``insert_user``,
                     ``get_user_by_username`` and ``get_user_by_id``
                     (SQLiteDatabaseHandler).
        """
        self._backend = backend

    def create_user(self, username: str, password_hash: str) -> Optional[int]:
        """Create a user account and return its id.

        Raises:
            sqlite3.IntegrityError: when the username is taken.
        """
        try:
            return self._backend.insert_user(username.strip(), password_hash)
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            logger.error("create_user failed: %s", e)
            return None

    def get_user_auth_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        """Return ``{id, username, password_hash}`` or *None*."""
        row = self._backend.get_user_by_username(username.strip())
        if not row:
            return None
        return {"id": row["id"], "username": row["username"], "password_hash": row["password_hash"]}

    def get_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Return ``{id, username, created_at}`` or *None*."""
        row = self._backend.get_user_by_id(user_id)
        return dict(row) if row else None
