"""
Alert Schemas
=============

Request schemas for manual alert creation and alert listing filters.
"""

from enum import Enum

from pydantic import BaseModel, Field


class AlertType(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    SOUND = "sound"
    WEIGHT = "weight"
    OTHER = "other"


class AlertSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class AlertSort(str, Enum):
    CREATED_AT = "created_at"
    SEVERITY = "severity"


class CreateAlertRequest(BaseModel):
    """Request schema for creating an alert by hand."""

    hive_id: str = Field(..., min_length=1)
    type: AlertType = Field(default=AlertType.OTHER)
    message: str = Field(..., min_length=1, max_length=500)
    severity: AlertSeverity = Field(default=AlertSeverity.MEDIUM)


class AlertListQuery(BaseModel):
    """Query string filters for ``GET /alerts``."""

    hive_id: str | None = None
    apiary_id: int | None = Field(default=None, gt=0)
    unread_only: bool = False
    type: AlertType | None = None
    severity: AlertSeverity | None = None
    search: str | None = None
    sort: AlertSort = AlertSort.CREATED_AT
    include_resolved: bool = False


class ResolveAllRequest(BaseModel):
    hive_id: str | None = None
