"""
Schemas Module
==============

This module provides Pydantic models for request/response validation.
Schemas ensure data integrity and provide automatic validation.
"""

from app.schemas.alerts import AlertListQuery, CreateAlertRequest, ResolveAllRequest
from app.schemas.apiaries import CreateApiaryRequest, UpdateApiaryRequest
from app.schemas.auth import CredentialsRequest
from app.schemas.common import ErrorResponse, PageQuery, PaginatedResponse, SuccessResponse
from app.schemas.hives import MetricReadingRequest, RegisterHiveRequest, UpdateHiveRequest
from app.schemas.inspections import CreateInspectionRequest, InspectionFindingsSchema, UpdateInspectionRequest
from app.schemas.production import CreateProductionRequest, UpdateProductionRequest
from app.schemas.settings import (
    SECTION_SCHEMAS,
    ImportDataRequest,
    ShareApiaryRequest,
    UpdateShareRequest,
)

__all__ = [
    "AlertListQuery",
    "CreateAlertRequest",
    "CreateApiaryRequest",
    "CreateInspectionRequest",
    "CreateProductionRequest",
    "CredentialsRequest",
    "ErrorResponse",
    "ImportDataRequest",
    "InspectionFindingsSchema",
    "MetricReadingRequest",
    "PageQuery",
    "PaginatedResponse",
    "RegisterHiveRequest",
    "ResolveAllRequest",
    "SECTION_SCHEMAS",
    "ShareApiaryRequest",
    "SuccessResponse",
    "UpdateApiaryRequest",
    "UpdateHiveRequest",
    "UpdateInspectionRequest",
    "UpdateProductionRequest",
    "UpdateShareRequest",
]
