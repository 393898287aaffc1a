"""
Apiary Schemas
==============

Request schemas for apiary endpoints.
"""

from pydantic import BaseModel, Field


class CreateApiaryRequest(BaseModel):
    """Request schema for creating an apiary."""

    name: str = Field(..., min_length=1, max_length=100, description="Apiary name")
    location: str = Field(..., min_length=1, max_length=200, description="Free-text location")
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    elevation: float | None = Field(default=None, description="Elevation in metres")
    notes: str | None = None
    image_url: str | None = None


class UpdateApiaryRequest(BaseModel):
    """Partial update; only fields present in the body are written."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    location: str | None = Field(default=None, min_length=1, max_length=200)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    elevation: float | None = None
    notes: str | None = None
    image_url: str | None = None
