from __future__ import annotations

import pytest

from infrastructure.database.pagination import PaginatedResponse, PaginationParams, apply_pagination_to_query


@pytest.mark.parametrize(
    ("page", "page_size", "expected"),
    [
        (None, None, (1, 10)),
        ("3", "20", (3, 20)),
        (0, 0, (1, 1)),
        (-4, 999, (1, 50)),
        ("abc", "", (1, 10)),
    ],
)
def test_from_request_clamps(page, page_size, expected):
    params = PaginationParams.from_request(page, page_size)
    assert (params.page, params.page_size) == expected


def test_offset_and_query():
    params = PaginationParams(page=3, page_size=10)
    assert params.offset == 20
    assert apply_pagination_to_query("SELECT * FROM Apiaries;", params) == "SELECT * FROM Apiaries LIMIT 10 OFFSET 20"


def test_paginated_response_envelope():
    response = PaginatedResponse(items=["a"], count=21, page=2, page_size=10)
    assert response.to_dict() == {"data": ["a"], "count": 21, "page": 2, "pageSize": 10, "totalPages": 3}
    assert PaginatedResponse(items=[], count=0, page=1, page_size=10).total_pages == 0
