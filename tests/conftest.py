"""
Shared test fixtures for the Smart Nyuki backend test suite.

Provides:
- File-backed SQLite database with all tables created
- Repository instances wired to the test database
- Mock services for optional dependencies
- Service factories for the application services
- Helper utilities for seeding test data
- A Flask app/client pair (pytest-flask picks up the ``app`` fixture)

Usage:
    def test_example(seed, hive_service):
        user_id = seed.create_user()
        seed.insert_reading("HIVE-1", temp_value=34.0)
        hive = hive_service.register_hive(user_id, {"hive_id": "HIVE-1", "name": "Queenie"})
"""

from __future__ import annotations

import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from app.utils.time import iso_now, utc_now
from infrastructure.database.repositories.alerts import AlertRepository
from infrastructure.database.repositories.apiaries import ApiaryRepository
from infrastructure.database.repositories.auth import AuthRepository
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.inspections import InspectionRepository
from infrastructure.database.repositories.metrics import MetricsRepository
from infrastructure.database.repositories.production import ProductionRepository
from infrastructure.database.repositories.settings import SettingsRepository

# ---------------------------------------------------------------------------
# Database & Repositories
# ---------------------------------------------------------------------------
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)

TEST_PASSWORD = "hunter2-bees"


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler(tmp_path):
    """SQLite database with all tables created.

    Each test gets a fresh file.
    """
    handler = SQLiteDatabaseHandler(str(tmp_path / "nyuki_test.db"))
    handler.create_tables()
    yield handler
    handler.close_db()


# ========================== Repository Fixtures ============================


@pytest.fixture()
def auth_repo(db_handler):
    return AuthRepository(db_handler)


@pytest.fixture()
def apiary_repo(db_handler):
    return ApiaryRepository(db_handler)


@pytest.fixture()
def hive_repo(db_handler):
    return HiveRepository(db_handler)


@pytest.fixture()
def metrics_repo(db_handler):
    return MetricsRepository(db_handler)


@pytest.fixture()
def alert_repo(db_handler):
    return AlertRepository(db_handler)


@pytest.fixture()
def inspection_repo(db_handler):
    return InspectionRepository(db_handler)


@pytest.fixture()
def production_repo(db_handler):
    return ProductionRepository(db_handler)


@pytest.fixture()
def settings_repo(db_handler):
    return SettingsRepository(db_handler)


# ========================== Mock Service Fixtures ==========================


@pytest.fixture()
def mock_audit_logger():
    """Mock AuditLogger."""
    logger = MagicMock()
    logger.log_event = MagicMock()
    return logger


@pytest.fixture()
def mock_emitter():
    """Mock EmitterService for SocketIO emission."""
    emitter = MagicMock()
    emitter.emit_alert_event = MagicMock(return_value=True)
    return emitter


# ========================== Service Factory Fixtures =======================


@pytest.fixture()
def alert_service(alert_repo, hive_repo, metrics_repo, settings_repo, mock_emitter):
    from app.services.application.alert_service import AlertService

    return AlertService(alert_repo, hive_repo, metrics_repo, settings_repo, emitter=mock_emitter)


@pytest.fixture()
def apiary_service(apiary_repo, hive_repo, metrics_repo):
    from app.services.application.apiary_service import ApiaryService

    return ApiaryService(apiary_repo, hive_repo, metrics_repo)


@pytest.fixture()
def hive_service(hive_repo, apiary_repo, metrics_repo, alert_repo, mock_audit_logger):
    from app.services.application.hive_service import HiveService

    return HiveService(hive_repo, apiary_repo, metrics_repo, alert_repo, audit_logger=mock_audit_logger)


@pytest.fixture()
def metrics_service(metrics_repo, hive_repo):
    from app.services.application.metrics_service import MetricsService

    return MetricsService(metrics_repo, hive_repo)


@pytest.fixture()
def inspection_service(inspection_repo, hive_repo, apiary_repo):
    from app.services.application.inspection_service import InspectionService

    return InspectionService(inspection_repo, hive_repo, apiary_repo)


@pytest.fixture()
def production_service(production_repo, apiary_repo, hive_repo, metrics_repo):
    from app.services.application.production_service import ProductionService

    return ProductionService(production_repo, apiary_repo, hive_repo, metrics_repo)


@pytest.fixture()
def settings_service(
    tmp_path,
    settings_repo,
    auth_repo,
    apiary_repo,
    hive_repo,
    inspection_repo,
    production_repo,
    mock_audit_logger,
):
    from app.services.application.settings_service import SettingsService

    return SettingsService(
        settings_repo,
        auth_repo,
        apiary_repo,
        hive_repo,
        inspection_repo,
        production_repo,
        backup_dir=str(tmp_path / "backups"),
        audit_logger=mock_audit_logger,
    )


# ========================== Seed Data Helpers ==============================


class SeedData:
    """Helper to create commonly needed test data.

    Usage in tests::

        def test_something(seed):
            user_id = seed.create_user("alice")
            apiary_id = seed.create_apiary(user_id, "Hillside")
            seed.create_hive("HIVE-1", user_id, apiary_id=apiary_id)
            seed.insert_reading("HIVE-1", temp_value=34.5, hum_value=55.0)
    """

    def __init__(self, db_handler: SQLiteDatabaseHandler):
        self._db = db_handler

    def create_user(self, username: str = "beekeeper") -> int:
        """Create a user (password hash is not a real bcrypt hash) and return its ID."""
        return self._db.insert_user(username, "not-a-real-hash")

    def create_apiary(
        self,
        user_id: int,
        name: str = "Hillside",
        location: str = "North Meadow",
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> int:
        with self._db.connection() as conn:
            cur = conn.execute(
                """INSERT INTO Apiaries (name, location, latitude, longitude, user_id, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (name, location, latitude, longitude, user_id, iso_now(), iso_now()),
            )
            return cur.lastrowid

    def create_hive(
        self,
        hive_id: str,
        user_id: int,
        *,
        name: str | None = None,
        apiary_id: int | None = None,
        alerts_enabled: bool = True,
    ) -> str:
        """Register a hive directly, bypassing the "device must have reported" rule."""
        with self._db.connection() as conn:
            conn.execute(
                """INSERT INTO Hives (hive_id, name, apiary_id, alerts_enabled, is_registered,
                   user_id, created_at, updated_at)
                   VALUES (?, ?, ?, ?, 1, ?, ?, ?)""",
                (hive_id, name or hive_id, apiary_id, int(alerts_enabled), user_id, iso_now(), iso_now()),
            )
        return hive_id

    def insert_reading(
        self,
        hive_id: str,
        *,
        temp_value: float | None = None,
        hum_value: float | None = None,
        sound_value: float | None = None,
        weight_value: float | None = None,
        minutes_ago: float = 0,
    ) -> int:
        """Insert a sensor reading and return its ID."""
        ts = (utc_now() - timedelta(minutes=minutes_ago)).isoformat()
        with self._db.connection() as conn:
            cur = conn.execute(
                """INSERT INTO HiveMetrics (hive_id, timestamp, temp_value, hum_value, sound_value, weight_value)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (hive_id, ts, temp_value, hum_value, sound_value, weight_value),
            )
            return cur.lastrowid

    def set_thresholds(self, user_id: int, **values: Any) -> None:
        columns = ", ".join(["user_id", *values])
        placeholders = ", ".join("?" for _ in range(len(values) + 1))
        with self._db.connection() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO AlertThresholds ({columns}) VALUES ({placeholders})",
                (user_id, *values.values()),
            )


@pytest.fixture()
def seed(db_handler):
    """SeedData helper for quickly populating the test database."""
    return SeedData(db_handler)


# ========================== Flask Application ==============================


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SMART_NYUKI_SECRET_KEY", "test-secret")
    monkeypatch.setenv("SMART_NYUKI_INGEST_TOKEN", "")
    monkeypatch.setenv("SMART_NYUKI_WEATHER_API_KEY", "")

    from app import create_app

    flask_app = create_app(
        {
            "database_path": str(tmp_path / "app.db"),
            "enable_scheduler": False,
            "backup_dir": str(tmp_path / "backups"),
            "audit_log_path": str(tmp_path / "logs" / "audit.log"),
        }
    )
    flask_app.config["TESTING"] = True
    try:
        yield flask_app
    finally:
        container = flask_app.config.get("CONTAINER")
        if container is not None:
            container.shutdown()


@pytest.fixture()
def container(app):
    return app.config["CONTAINER"]


@pytest.fixture()
def login():
    """Return ``login(client, username)``: register through the API, log in, return the user id."""

    def _login(client, username: str = "beekeeper", password: str = TEST_PASSWORD) -> int:
        response = client.post("/auth/register", json={"username": username, "password": password})
        assert response.status_code == 201, response.get_json()
        response = client.post("/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.get_json()
        return response.get_json()["data"]["id"]

    return _login


@pytest.fixture()
def auth_client(client, login):
    """Test client with a logged-in session; the user id is on ``auth_client.user_id``."""
    client.user_id = login(client)
    return client


@pytest.fixture()
def report_reading():
    """Return ``report_reading(client, hive_id, **values)`` posting to the device ingest endpoint."""

    def _report(client, hive_id: str, **values: Any):
        return client.post(f"/api/v1/metrics/{hive_id}", json=values)

    return _report
