"""
Container Builder
=================

Constructs everything ServiceContainer holds, one subsystem per method:

- build_infrastructure(): database handler, repositories, audit logger
- build_shared_utilities(): Socket.IO emitter and the cache registry
- build_application_components(): domain services, scheduler and metrics checker

ServiceContainer.build() delegates to ContainerBuilder.build().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.config import AppConfig
from app.services.application.alert_service import AlertService
from app.services.application.apiary_service import ApiaryService
from app.services.application.auth_service import UserAuthManager
from app.services.application.hive_service import HiveService
from app.services.application.inspection_service import InspectionService
from app.services.application.metrics_service import MetricsService
from app.services.application.production_service import ProductionService
from app.services.application.settings_service import SettingsService
from app.services.application.weather_service import WeatherService
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

# Open alert ids per (hive, type); an alert stays open far longer than this
ALERT_DEDUPE_TTL_SECONDS = 900


@dataclass
class InfrastructureComponents:
    """Infrastructure layer components (database, repos, logging)."""

    database: SQLiteDatabaseHandler
    auth_repo: AuthRepository
    apiary_repo: ApiaryRepository
    hive_repo: HiveRepository
    metrics_repo: MetricsRepository
    alert_repo: AlertRepository
    inspection_repo: InspectionRepository
    production_repo: ProductionRepository
    settings_repo: SettingsRepository
    audit_logger: AuditLogger


@dataclass
class SharedUtilities:
    """Cross-cutting utilities shared by several services."""

    emitter_service: EmitterService
    caches: CacheRegistry


@dataclass
class ApplicationComponents:
    """Application services plus the background scheduling pieces."""

    auth_manager: UserAuthManager
    alert_service: AlertService
    metrics_service: MetricsService
    apiary_service: ApiaryService
    hive_service: HiveService
    inspection_service: InspectionService
    production_service: ProductionService
    settings_service: SettingsService
    weather_service: WeatherService
    scheduler: UnifiedScheduler
    metrics_checker: MetricsChecker


class ContainerBuilder:
    """Builder for the service container; each method constructs one subsystem."""

    def __init__(self, config: AppConfig):
        self.config = config

    def build_infrastructure(self) -> InfrastructureComponents:
        logger.info("Building infrastructure components...")

        audit_logger = AuditLogger(self.config.audit_log_path, self.config.log_level)
        database = SQLiteDatabaseHandler(
            self.config.database_path,
            cache_size_kb=self.config.db_cache_size_kb,
            mmap_size_bytes=self.config.db_mmap_size_bytes,
        )
        database.init_app(None)

        components = InfrastructureComponents(
            database=database,
            auth_repo=AuthRepository(database),
            apiary_repo=ApiaryRepository(database),
            hive_repo=HiveRepository(database),
            metrics_repo=MetricsRepository(database),
            alert_repo=AlertRepository(database),
            inspection_repo=InspectionRepository(database),
            production_repo=ProductionRepository(database),
            settings_repo=SettingsRepository(database),
            audit_logger=audit_logger,
        )
        logger.info("✓ Infrastructure components initialized (%s)", self.config.database_path)
        return components

    def build_shared_utilities(self) -> SharedUtilities:
        logger.info("Building shared utilities...")

        # Imported here so the extensions module stays free of service imports
        from app.extensions import socketio

        return SharedUtilities(emitter_service=EmitterService(sio=socketio), caches=CacheRegistry())

    def build_application_components(
        self,
        infra: InfrastructureComponents,
        utils: SharedUtilities,
    ) -> ApplicationComponents:
        logger.info("Building application services...")
        config = self.config

        dedupe_cache = utils.caches.register(
            "alert_dedupe",
            TTLCache(enabled=config.cache_enabled, ttl_seconds=ALERT_DEDUPE_TTL_SECONDS, maxsize=1024),
        )
        weather_cache = utils.caches.register(
            "weather",
            TTLCache(enabled=config.cache_enabled, ttl_seconds=config.weather_cache_ttl_seconds, maxsize=256),
        )

        alert_service = AlertService(
            infra.alert_repo,
            infra.hive_repo,
            infra.metrics_repo,
            infra.settings_repo,
            emitter=utils.emitter_service,
            stale_after_minutes=config.metrics_stale_after_minutes,
            dedupe_cache=dedupe_cache,
        )
        scheduler = UnifiedScheduler()
        metrics_checker = MetricsChecker(
            scheduler,
            alert_service,
            default_interval=config.metrics_check_interval_seconds,
            min_interval=config.metrics_check_min_interval_seconds,
        )

        components = ApplicationComponents(
            auth_manager=UserAuthManager(infra.database, infra.audit_logger, auth_repo=infra.auth_repo),
            alert_service=alert_service,
            metrics_service=MetricsService(infra.metrics_repo, infra.hive_repo),
            apiary_service=ApiaryService(infra.apiary_repo, infra.hive_repo, infra.metrics_repo),
            hive_service=HiveService(
                infra.hive_repo,
                infra.apiary_repo,
                infra.metrics_repo,
                infra.alert_repo,
                audit_logger=infra.audit_logger,
            ),
            inspection_service=InspectionService(infra.inspection_repo, infra.hive_repo, infra.apiary_repo),
            production_service=ProductionService(
                infra.production_repo, infra.apiary_repo, infra.hive_repo, infra.metrics_repo
            ),
            settings_service=SettingsService(
                infra.settings_repo,
                infra.auth_repo,
                infra.apiary_repo,
                infra.hive_repo,
                infra.inspection_repo,
                infra.production_repo,
                backup_dir=config.backup_dir,
                audit_logger=infra.audit_logger,
            ),
            weather_service=WeatherService(
                api_key=config.weather_api_key,
                base_url=config.weather_api_url,
                timeout=config.weather_timeout_seconds,
                cache=weather_cache,
                apiary_repo=infra.apiary_repo,
            ),
            scheduler=scheduler,
            metrics_checker=metrics_checker,
        )
        logger.info("✓ Application services initialized")
        return components

    def build(self) -> dict[str, Any]:
        """Build every subsystem and return them as ServiceContainer keyword arguments."""
        logger.info("Building ServiceContainer with ContainerBuilder...")

        infra = self.build_infrastructure()
        utils = self.build_shared_utilities()
        app = self.build_application_components(infra, utils)

        return {
            "config": self.config,
            "database": infra.database,
            "auth_repo": infra.auth_repo,
            "apiary_repo": infra.apiary_repo,
            "hive_repo": infra.hive_repo,
            "metrics_repo": infra.metrics_repo,
            "alert_repo": infra.alert_repo,
            "inspection_repo": infra.inspection_repo,
            "production_repo": infra.production_repo,
            "settings_repo": infra.settings_repo,
            "audit_logger": infra.audit_logger,
            "emitter_service": utils.emitter_service,
            "caches": utils.caches,
            "auth_manager": app.auth_manager,
            "alert_service": app.alert_service,
            "metrics_service": app.metrics_service,
            "apiary_service": app.apiary_service,
            "hive_service": app.hive_service,
            "inspection_service": app.inspection_service,
            "production_service": app.production_service,
            "settings_service": app.settings_service,
            "weather_service": app.weather_service,
            "scheduler": app.scheduler,
            "metrics_checker": app.metrics_checker,
        }
