"""
Settings Schemas
================

Request schemas for profile, preference sections, apiary sharing and data import.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    PROFESSIONAL = "professional"


class SharePermission(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=50)
    bio: str | None = None
    experience_level: ExperienceLevel | None = None
    profile_image_url: str | None = None


class PreferencesUpdate(BaseModel):
    theme: str | None = None
    language: str | None = None
    font_size: str | None = None
    high_contrast: bool | None = None
    temperature_unit: str | None = None
    weight_unit: str | None = None
    date_format: str | None = None


class NotificationsUpdate(BaseModel):
    email_enabled: bool | None = None
    sms_enabled: bool | None = None
    push_enabled: bool | None = None
    quiet_hours_start: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    quiet_hours_end: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")


class AlertThresholdsUpdate(BaseModel):
    """Bounds per metric; min < max is checked against the stored row by the service."""

    temperature_min: float | None = None
    temperature_max: float | None = None
    humidity_min: float | None = None
    humidity_max: float | None = None
    sound_min: float | None = None
    sound_max: float | None = None
    weight_min: float | None = None
    weight_max: float | None = None


class SharingUpdate(BaseModel):
    default_sharing_permission: SharePermission | None = None
    allow_data_analytics: bool | None = None
    share_location: bool | None = None
    profile_visibility: str | None = None
    production_data_visibility: str | None = None
    activity_tracking: bool | None = None


SECTION_SCHEMAS: dict[str, type[BaseModel]] = {
    "profile": ProfileUpdate,
    "preferences": PreferencesUpdate,
    "notifications": NotificationsUpdate,
    "alert_thresholds": AlertThresholdsUpdate,
    "sharing": SharingUpdate,
}


class ShareApiaryRequest(BaseModel):
    apiary_id: int = Field(..., gt=0)
    username: str = Field(..., min_length=1)
    permission: SharePermission = SharePermission.VIEW


class UpdateShareRequest(BaseModel):
    permission: SharePermission


class ImportDataRequest(BaseModel):
    """Export document produced by ``GET /settings/export``."""

    version: str
    profile: dict[str, Any]
    preferences: dict[str, Any] | None = None
    notifications: dict[str, Any] | None = None
    alertThresholds: dict[str, Any] | None = None
    sharingPreferences: dict[str, Any] | None = None
