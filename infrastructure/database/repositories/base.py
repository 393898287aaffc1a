"""
Base Repository Protocol
========================

Defines the minimal contract that Smart Nyuki repositories implement.
Uses ``typing.Protocol`` (structural subtyping) so repository classes
satisfy the contract without inheritance.

Usage in service type hints::

    from infrastructure.database.repositories.base import BaseRepository


    class MyService:
        def __init__(self, repo: BaseRepository) -> None: ...
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class BaseRepository(Protocol):
    """Marker protocol for dependency injection of repository facades."""


@runtime_checkable
class ReadRepository(Protocol):
    """Repository that supports reading a single record by ID."""

    def get(self, record_id: Any, user_id: int) -> dict[str, Any] | None:
        """Retrieve a record owned by ``user_id``.

        Returns ``None`` when the record does not exist or belongs to someone else.
        """
        ...


@runtime_checkable
class WriteRepository(Protocol):
    """Repository that supports creating a record."""

    def create(self, *args: Any, **kwargs: Any) -> Any:
        """Persist a new record and return its generated ID (``None`` on failure)."""
        ...


@runtime_checkable
class CrudRepository(ReadRepository, WriteRepository, Protocol):
    """Convenience union of Read + Write protocols."""


__all__ = [
    "BaseRepository",
    "CrudRepository",
    "ReadRepository",
    "WriteRepository",
]
