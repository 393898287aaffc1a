"""
Hive Schemas
============

Request schemas for hive registration and device metric ingestion.
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class RegisterHiveRequest(BaseModel):
    """Request schema for registering a device-backed hive."""

    hive_id: str = Field(..., min_length=1, max_length=64, description="Device hive identifier")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    apiary_id: int | None = Field(default=None, gt=0)
    type: str | None = Field(default=None, description="Hive type, e.g. Langstroth")
    status: str | None = None
    # Kept as strings: the client sends "" for an unset date
    installation_date: str | None = None
    queen_introduced_date: str | None = None
    queen_type: str | None = None
    queen_marked: bool = False
    queen_marking_color: str | None = None
    notes: str | None = None
    image_url: str | None = None
    alerts_enabled: bool = True


class UpdateHiveRequest(BaseModel):
    """Partial hive update."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    apiary_id: int | None = Field(default=None, gt=0)
    type: str | None = None
    status: str | None = None
    installation_date: str | None = None
    queen_introduced_date: str | None = None
    queen_type: str | None = None
    queen_marked: bool | None = None
    queen_marking_color: str | None = None
    notes: str | None = None
    image_url: str | None = None
    alerts_enabled: bool | None = None


class MetricReadingRequest(BaseModel):
    """One reading reported by a hive device."""

    temp_value: float | None = Field(default=None, description="Brood temperature in °C")
    hum_value: float | None = Field(default=None, description="Relative humidity in %")
    sound_value: float | None = Field(default=None, description="Sound level in dB")
    weight_value: float | None = Field(default=None, description="Hive weight in kg")
    timestamp: datetime | None = Field(default=None, description="Reading time; defaults to now (UTC)")

    @model_validator(mode="after")
    def at_least_one_metric(self):
        if all(v is None for v in (self.temp_value, self.hum_value, self.sound_value, self.weight_value)):
            raise ValueError("At least one metric value is required")
        return self
