from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.config import AppConfig
from app.services.application.alert_service import AlertService
from app.services.application.apiary_service import ApiaryService
from app.services.application.auth_service import UserAuthManager
from app.services.application.dashboard_service import DashboardService
from app.services.application.hive_service import HiveService
from app.services.application.inspection_service import InspectionService
from app.services.application.metrics_service import MetricsService
from app.services.application.production_service import ProductionService
from app.services.application.settings_service import SettingsService
from app.services.application.weather_service import WeatherService
from app.services.container_builder import ContainerBuilder
from app.utils.cache import CacheRegistry, TTLCache
from app.utils.emitters import EmitterService
from app.workers.metrics_checker import MetricsChecker
from app.workers.unified_scheduler import UnifiedScheduler
from infrastructure.database.repositories.alerts import AlertRepository
from infrastructure.database.repositories.apiaries import ApiaryRepository
from infrastructure.database.repositories.auth import AuthRepository
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.inspections import InspectionRepository
from infrastructure.database.repositories.metrics import MetricsRepository
from infrastructure.database.repositories.production import ProductionRepository
from infrastructure.database.repositories.settings import SettingsRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    # Repositories
    auth_repo: AuthRepository
    apiary_repo: ApiaryRepository
    hive_repo: HiveRepository
    metrics_repo: MetricsRepository
    alert_repo: AlertRepository
    inspection_repo: InspectionRepository
    production_repo: ProductionRepository
    settings_repo: SettingsRepository
    audit_logger: AuditLogger
    # Shared utilities
    emitter_service: EmitterService
    caches: CacheRegistry
    # Application services
    auth_manager: UserAuthManager
    alert_service: AlertService
    metrics_service: MetricsService
    apiary_service: ApiaryService
    hive_service: HiveService
    inspection_service: InspectionService
    production_service: ProductionService
    settings_service: SettingsService
    weather_service: WeatherService
    # Background work
    scheduler: UnifiedScheduler
    metrics_checker: MetricsChecker
    dashboard_service: DashboardService = field(init=False)

    def __post_init__(self) -> None:
        # Aggregates the other services, so it is built once they exist
        summary_cache = self.caches.register(
            "dashboard",
            TTLCache(
                enabled=self.config.cache_enabled,
                ttl_seconds=self.config.cache_ttl_seconds,
                maxsize=self.config.cache_maxsize,
            ),
        )
        self.dashboard_service = DashboardService(self, summary_cache)

    @classmethod
    def build(cls, config: AppConfig, *, start_scheduler: bool | None = None) -> "ServiceContainer":
        """Construct the container and, when enabled, start the background scheduler.

        Args:
            config: Application configuration
            start_scheduler: Overrides ``config.enable_scheduler`` when given
        """
        logger.info("Building ServiceContainer using ContainerBuilder...")
        components = ContainerBuilder(config).build()
        container = cls(**components)

        if config.enable_scheduler if start_scheduler is None else start_scheduler:
            # Tasks need the complete container, so scheduling happens last
            from app.workers.scheduled_tasks import configure_scheduler

            try:
                configure_scheduler(container.scheduler, container)
                logger.info("✓ UnifiedScheduler initialized and started")
            except (RuntimeError, ValueError, OSError) as e:
                raise RuntimeError("Failed to initialize UnifiedScheduler") from e
        else:
            logger.info("Background scheduler disabled")

        logger.info("ServiceContainer built successfully.")
        return container

    def shutdown(self) -> None:
        """Release background threads and database connections before process exit."""
        self.metrics_checker.stop()
        try:
            self.scheduler.stop()
            logger.info("✓ UnifiedScheduler stopped")
        except RuntimeError as e:
            logger.warning("Failed to stop UnifiedScheduler: %s", e)

        self.caches.clear_all()
        self.database.close_db()
        logger.info("ServiceContainer shutdown complete.")
