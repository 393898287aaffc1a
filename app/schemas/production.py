"""
Production Schemas
==================

Request schemas for harvest records.
"""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field


class ProductionType(str, Enum):
    HONEY = "honey"
    WAX = "wax"
    POLLEN = "pollen"
    PROPOLIS = "propolis"
    ROYAL_JELLY = "royal_jelly"


class CreateProductionRequest(BaseModel):
    """Request schema for adding a harvest record."""

    hive_id: str = Field(..., min_length=1, description="Harvested hive; its apiary is used when apiary_id is omitted")
    apiary_id: int | None = Field(default=None, gt=0)
    date: dt.date
    amount: float = Field(..., ge=0, description="Harvested amount in kg")
    quality: str | None = None
    type: ProductionType = ProductionType.HONEY
    notes: str | None = None
    projected_harvest: float | None = Field(default=None, ge=0)
    weight_change: float | None = None


class UpdateProductionRequest(BaseModel):
    """Partial update of a harvest record."""

    hive_id: str | None = None
    apiary_id: int | None = Field(default=None, gt=0)
    date: dt.date | None = None
    amount: float | None = Field(default=None, ge=0)
    quality: str | None = None
    type: ProductionType | None = None
    notes: str | None = None
    projected_harvest: float | None = Field(default=None, ge=0)
    weight_change: float | None = None
