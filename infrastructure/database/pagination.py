"""
Database Pagination Utilities
==============================
Helper functions for consistent page-based pagination across repositories.

Dashboard list views page through rows with:
- Default page size: 10
- Maximum page size: 50 (larger requests are clamped, not rejected)
- Minimum page: 1
"""

import math
from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50
MIN_PAGE_SIZE = 1
MIN_PAGE = 1


def _as_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class PaginationParams:
    """Validated pagination parameters."""

    page: int
    page_size: int

    @classmethod
    def from_request(
        cls,
        page: Any = None,
        page_size: Any = None,
    ) -> "PaginationParams":
        """
        Create clamped pagination parameters from request inputs.

        Args:
            page: 1-indexed page number (values below 1 become 1)
            page_size: Rows per page (clamped to 1..50, default 10)

        Returns:
            PaginationParams with clamped values
        """
        validated_page = max(MIN_PAGE, _as_int(page, MIN_PAGE))
        validated_size = min(MAX_PAGE_SIZE, max(MIN_PAGE_SIZE, _as_int(page_size, DEFAULT_PAGE_SIZE)))
        return cls(page=validated_page, page_size=validated_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    def to_sql_clause(self) -> str:
        """
        Generate SQL LIMIT/OFFSET clause.

        Returns:
            SQL clause string (e.g., "LIMIT 10 OFFSET 20")
        """
        return f"LIMIT {self.limit} OFFSET {self.offset}"


@dataclass
class PaginatedResponse:
    """Standard paginated response structure."""

    items: list[Any]
    count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.count / self.page_size)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase envelope the dashboard consumes."""
        return {
            "data": self.items,
            "count": self.count,
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
        }


def apply_pagination_to_query(query: str, params: PaginationParams) -> str:
    """
    Add LIMIT/OFFSET clause to SQL query.

    Example:
        >>> query = "SELECT * FROM Apiaries WHERE user_id = ? ORDER BY name"
        >>> apply_pagination_to_query(query, PaginationParams(page=3, page_size=10))
        'SELECT * FROM Apiaries WHERE user_id = ? ORDER BY name LIMIT 10 OFFSET 20'
    """
    return f"{query.rstrip().rstrip(';')} {params.to_sql_clause()}"
