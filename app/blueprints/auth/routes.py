from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, session
from pydantic import ValidationError

from app.blueprints.api._common import fail, get_json, invalid, success
from app.schemas.auth import CredentialsRequest
from app.security.auth import api_login_required, current_user_id, current_username
from app.utils.http import safe_route

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


def _credentials() -> CredentialsRequest:
    return CredentialsRequest(**get_json())


@auth_bp.post("/register")
@safe_route("Registration failed")
def register() -> Response:
    container = current_app.config["CONTAINER"]
    try:
        body = _credentials()
    except ValidationError as ve:
        return invalid(ve, "Username and password are required")

    # Raises ValidationError / ConflictError, mapped by safe_route
    user_id = container.auth_manager.register_user(body.username, body.password)
    return success({"id": user_id, "username": body.username.strip()}, status=201)


@auth_bp.post("/login")
@safe_route("Login failed")
def login() -> Response:
    container = current_app.config["CONTAINER"]
    try:
        body = _credentials()
    except ValidationError as ve:
        return invalid(ve, "Username and password are required")

    username = body.username.strip()
    user_id = container.auth_manager.authenticate_user(username, body.password)
    if user_id is None:
        return fail("Invalid username or password", 401, code="INVALID_CREDENTIALS")

    # Regenerate session to prevent session fixation attacks
    session.clear()
    session["user"] = username
    session["user_id"] = user_id
    session.permanent = True
    container.audit_logger.log_event(actor=username, action="login", resource="session", outcome="success")
    return success({"id": user_id, "username": username})


@auth_bp.post("/logout")
def logout() -> Response:
    username = current_username()
    session.clear()
    if username:
        current_app.config["CONTAINER"].audit_logger.log_event(
            actor=username, action="logout", resource="session", outcome="success"
        )
    return success({"logged_out": True})


@auth_bp.get("/me")
@api_login_required
@safe_route("Failed to load current user")
def me() -> Response:
    container = current_app.config["CONTAINER"]
    user = container.auth_manager.get_user_by_id(current_user_id())
    if not user:
        session.clear()
        return fail("Authentication required", 401, code="UNAUTHORIZED")
    return success({"id": user["id"], "username": user["username"], "created_at": user.get("created_at")})
