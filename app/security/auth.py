from functools import wraps
from typing import Callable, TypeVar, cast

from flask import session

from app.utils.http import error_response

F = TypeVar("F", bound=Callable[..., object])


def api_login_required(view_func: F) -> F:
    """Ensure the user is authenticated for API endpoints (returns JSON 401)."""

    @wraps(view_func)
    def wrapped(*args, **kwargs):
        if "user" not in session or session.get("user_id") is None:
            return error_response("Authentication required", 401, code="UNAUTHORIZED")
        return view_func(*args, **kwargs)

    return cast(F, wrapped)


def current_username() -> str | None:
    return session.get("user")


def current_user_id() -> int | None:
    user_id = session.get("user_id")
    return int(user_id) if user_id is not None else None
