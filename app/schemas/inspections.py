"""
Inspection Schemas
==================

Request schemas for hive inspections and their findings.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class InspectionStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class InspectionFindingsSchema(BaseModel):
    """Scored observations attached to an inspection."""

    queen_sighted: bool | None = None
    brood_pattern: int | None = Field(default=None, ge=1, le=5)
    honey_stores: int | None = Field(default=None, ge=1, le=5)
    population_strength: int | None = Field(default=None, ge=1, le=10)
    temperament: int | None = Field(default=None, ge=1, le=5)
    diseases_sighted: str | None = None
    varroa_count: int | None = Field(default=None, ge=0)
    notes: str | None = None


class _InspectionFields(BaseModel):
    weight: float | None = None
    temperature: float | None = None
    humidity: float | None = None
    weather_conditions: str | None = None
    hive_strength: int | None = Field(default=None, ge=0)
    queen_seen: bool | None = None
    eggs_seen: bool | None = None
    larvae_seen: bool | None = None
    queen_cells_seen: bool | None = None
    disease_signs: bool | None = None
    disease_details: str | None = None
    varroa_check: bool | None = None
    varroa_count: int | None = Field(default=None, ge=0)
    honey_stores: str | None = None
    pollen_stores: str | None = None
    added_supers: bool | None = None
    removed_supers: bool | None = None
    feed_added: bool | None = None
    feed_type: str | None = None
    feed_amount: str | None = None
    medications_added: bool | None = None
    medication_details: str | None = None
    notes: str | None = None
    images: list[str] | None = None
    status: InspectionStatus | None = None
    findings: InspectionFindingsSchema | None = None


class CreateInspectionRequest(_InspectionFields):
    """Request schema for recording or scheduling an inspection."""

    hive_id: str = Field(..., min_length=1)
    inspection_date: date = Field(..., description="Day of the inspection")


class UpdateInspectionRequest(_InspectionFields):
    """Partial inspection update; findings are upserted when present."""

    hive_id: str | None = Field(default=None, min_length=1)
    inspection_date: date | None = None
