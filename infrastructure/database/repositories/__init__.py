"""Repository facades exposing typed accessors over low-level mixins.

Base protocols are available for type-checking and dependency injection::

    from infrastructure.database.repositories.base import BaseRepository
"""

from infrastructure.database.repositories.alerts import AlertRepository
from infrastructure.database.repositories.apiaries import ApiaryRepository
from infrastructure.database.repositories.auth import AuthRepository
from infrastructure.database.repositories.base import (
    BaseRepository,
    CrudRepository,
    ReadRepository,
    WriteRepository,
)
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.inspections import InspectionRepository
from infrastructure.database.repositories.metrics import MetricsRepository
from infrastructure.database.repositories.production import ProductionRepository
from infrastructure.database.repositories.settings import SettingsRepository

__all__ = [
    "AlertRepository",
    "ApiaryRepository",
    "AuthRepository",
    "BaseRepository",
    "CrudRepository",
    "HiveRepository",
    "InspectionRepository",
    "MetricsRepository",
    "ProductionRepository",
    "ReadRepository",
    "SettingsRepository",
    "WriteRepository",
]
