"""
Auth Schemas
============

Request schemas for the JSON registration and login endpoints.
"""

from pydantic import BaseModel, Field


class CredentialsRequest(BaseModel):
    """Username/password pair; length rules are enforced by UserAuthManager."""

    username: str = Field(..., description="Account username")
    password: str = Field(..., description="Plain-text password")
