import logging
import shutil
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from flask import Flask

from app.utils.time import iso_now
from infrastructure.database.ops.alerts import AlertOperations
from infrastructure.database.ops.apiaries import ApiaryOperations
from infrastructure.database.ops.hives import HiveOperations
from infrastructure.database.ops.inspections import InspectionOperations
from infrastructure.database.ops.metrics import MetricOperations
from infrastructure.database.ops.production import ProductionOperations
from infrastructure.database.ops.settings import SettingsOperations

logger = logging.getLogger(__name__)


class SQLiteDatabaseHandler(
    SettingsOperations,
    ApiaryOperations,
    HiveOperations,
    MetricOperations,
    AlertOperations,
    InspectionOperations,
    ProductionOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals."""

    def __init__(
        self,
        database_path: str,
        *,
        cache_size_kb: int = 8_000,
        mmap_size_bytes: int = 33_554_432,
    ) -> None:
        self._database_path = database_path
        self._cache_size_kb = cache_size_kb
        self._mmap_size_bytes = mmap_size_bytes
        self._local = threading.local()

        # Ensure the directory for the database file exists
        if database_path != ":memory:":
            db_path = Path(database_path)
            if not db_path.parent.exists():
                db_path.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created database directory: %s", db_path.parent)

    @property
    def database_path(self) -> str:
        return self._database_path

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None) -> None:
        if app is not None:
            app.teardown_appcontext(self.close_db)
        self.create_tables()

    def get_db(self) -> sqlite3.Connection:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            try:
                connection = self._open_connection()
            except sqlite3.DatabaseError as exc:
                if self._is_corruption_error(exc):
                    logger.error("Database appears corrupt (%s). Recreating a fresh database.", exc)
                    self._quarantine_corrupt_db()
                    connection = self._open_connection()
                else:
                    raise
            self._local.connection = connection
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path, check_same_thread=False)
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _is_corruption_error(self, exc: sqlite3.Error) -> bool:
        message = str(exc).lower()
        return (
            "database disk image is malformed" in message
            or "file is not a database" in message
            or "file is encrypted or is not a database" in message
        )

    def _quarantine_corrupt_db(self) -> Optional[Path]:
        db_path = Path(self._database_path)
        if not db_path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        quarantine_dir = db_path.parent / "corrupt"
        quarantine_dir.mkdir(parents=True, exist_ok=True)

        suffix = db_path.suffix or ".db"
        quarantined = quarantine_dir / f"{db_path.stem}_corrupt_{timestamp}{suffix}"
        try:
            shutil.move(str(db_path), str(quarantined))
            for sidecar_suffix in ("-wal", "-shm"):
                sidecar = Path(f"{db_path}{sidecar_suffix}")
                if sidecar.exists():
                    shutil.move(str(sidecar), str(quarantine_dir / f"{sidecar.name}_{timestamp}"))
            logger.warning("Quarantined corrupt database to %s", quarantined)
            return quarantined
        except OSError as exc:
            logger.error("Failed to quarantine corrupt database %s: %s", db_path, exc)
            return None

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """Configure the SQLite connection.

        - WAL mode: concurrent readers while the scheduler writes alerts
        - NORMAL synchronous: safe with WAL
        - foreign keys: hive deletes cascade to alerts, inspections and harvests
        """
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute(f"PRAGMA cache_size=-{int(self._cache_size_kb)}")
        connection.execute("PRAGMA temp_store=MEMORY")
        connection.execute(f"PRAGMA mmap_size={int(self._mmap_size_bytes)}")
        connection.execute("PRAGMA foreign_keys=ON")
        connection.commit()

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_db()
        try:
            yield conn
        finally:
            conn.commit()

    def ping(self) -> bool:
        try:
            self.get_db().execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error as exc:
            logger.error("Database ping failed: %s", exc)
            return False

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the necessary tables in the database if they do not already exist."""
        try:
            with self.connection() as db:
                # Users Table
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        username TEXT UNIQUE NOT NULL,
                        password_hash TEXT NOT NULL,
                        created_at TEXT
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS UserProfiles (
                        user_id INTEGER PRIMARY KEY,
                        first_name TEXT,
                        last_name TEXT,
                        email TEXT,
                        phone TEXT,
                        bio TEXT,
                        experience_level TEXT DEFAULT 'beginner',
                        profile_image_url TEXT,
                        updated_at TEXT,
                        FOREIGN KEY (user_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS UserPreferences (
                        user_id INTEGER PRIMARY KEY,
                        theme TEXT DEFAULT 'system',
                        language TEXT DEFAULT 'en',
                        font_size TEXT DEFAULT 'medium',
                        high_contrast INTEGER DEFAULT 0,
                        temperature_unit TEXT DEFAULT 'celsius',
                        weight_unit TEXT DEFAULT 'kg',
                        date_format TEXT DEFAULT 'MM/DD/YYYY',
                        updated_at TEXT,
                        FOREIGN KEY (user_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS NotificationPreferences (
                        user_id INTEGER PRIMARY KEY,
                        email_enabled INTEGER DEFAULT 1,
                        sms_enabled INTEGER DEFAULT 0,
                        push_enabled INTEGER DEFAULT 1,
                        quiet_hours_start TEXT DEFAULT '22:00',
                        quiet_hours_end TEXT DEFAULT '08:00',
                        updated_at TEXT,
                        FOREIGN KEY (user_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS AlertThresholds (
                        user_id INTEGER PRIMARY KEY,
                        temperature_min REAL DEFAULT 32,
                        temperature_max REAL DEFAULT 36,
                        humidity_min REAL DEFAULT 40,
                        humidity_max REAL DEFAULT 65,
                        sound_min REAL DEFAULT 30,
                        sound_max REAL DEFAULT 60,
                        weight_min REAL DEFAULT 10,
                        weight_max REAL DEFAULT 25,
                        updated_at TEXT,
                        FOREIGN KEY (user_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS SharingPreferences (
                        user_id INTEGER PRIMARY KEY,
                        default_sharing_permission TEXT DEFAULT 'view',
                        allow_data_analytics INTEGER DEFAULT 1,
                        share_location INTEGER DEFAULT 0,
                        profile_visibility TEXT DEFAULT 'contacts',
                        production_data_visibility TEXT DEFAULT 'private',
                        activity_tracking INTEGER DEFAULT 1,
                        updated_at TEXT,
                        FOREIGN KEY (user_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Backups (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id INTEGER NOT NULL,
                        backup_type TEXT DEFAULT 'manual',
                        status TEXT DEFAULT 'completed',
                        file_path TEXT,
                        size_bytes INTEGER DEFAULT 0,
                        created_at TEXT,
                        FOREIGN KEY (user_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )

                # Apiaries & hives
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Apiaries (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        location TEXT NOT NULL,
                        latitude REAL,
                        longitude REAL,
                        elevation REAL,
                        notes TEXT,
                        image_url TEXT,
                        user_id INTEGER NOT NULL,
                        created_at TEXT,
                        updated_at TEXT,
                        FOREIGN KEY (user_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS SharedApiaries (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        apiary_id INTEGER NOT NULL,
                        owner_id INTEGER NOT NULL,
                        shared_with_id INTEGER NOT NULL,
                        permission TEXT DEFAULT 'view',
                        created_at TEXT,
                        UNIQUE (apiary_id, shared_with_id),
                        FOREIGN KEY (apiary_id) REFERENCES Apiaries(id) ON DELETE CASCADE,
                        FOREIGN KEY (shared_with_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Hives (
                        hive_id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        apiary_id INTEGER,
                        type TEXT,
                        status TEXT DEFAULT 'active',
                        installation_date TEXT,
                        queen_introduced_date TEXT,
                        queen_type TEXT,
                        queen_marked INTEGER DEFAULT 0,
                        queen_marking_color TEXT,
                        notes TEXT,
                        image_url TEXT,
                        alerts_enabled INTEGER DEFAULT 1,
                        is_registered INTEGER DEFAULT 0,
                        user_id INTEGER,
                        created_at TEXT,
                        updated_at TEXT,
                        FOREIGN KEY (apiary_id) REFERENCES Apiaries(id) ON DELETE SET NULL,
                        FOREIGN KEY (user_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )
                # Readings arrive from devices before a hive is registered,
                # so hive_id carries no foreign key.
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS HiveMetrics (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        hive_id TEXT NOT NULL,
                        timestamp TEXT NOT NULL,
                        temp_value REAL,
                        hum_value REAL,
                        sound_value REAL,
                        weight_value REAL
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Alert (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        hive_id TEXT NOT NULL,
                        type TEXT NOT NULL DEFAULT 'other',
                        message TEXT NOT NULL,
                        severity TEXT NOT NULL DEFAULT 'medium',
                        created_at TEXT NOT NULL,
                        is_read INTEGER DEFAULT 0,
                        resolved_at TEXT,
                        FOREIGN KEY (hive_id) REFERENCES Hives(hive_id) ON DELETE CASCADE
                    )
                    """
                )

                # Inspections
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Inspections (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        hive_id TEXT NOT NULL,
                        inspection_date TEXT NOT NULL,
                        weight REAL,
                        temperature REAL,
                        humidity REAL,
                        weather_conditions TEXT,
                        hive_strength INTEGER,
                        queen_seen INTEGER DEFAULT 0,
                        eggs_seen INTEGER DEFAULT 0,
                        larvae_seen INTEGER DEFAULT 0,
                        queen_cells_seen INTEGER DEFAULT 0,
                        disease_signs INTEGER DEFAULT 0,
                        disease_details TEXT,
                        varroa_check INTEGER DEFAULT 0,
                        varroa_count INTEGER,
                        honey_stores TEXT,
                        pollen_stores TEXT,
                        added_supers INTEGER DEFAULT 0,
                        removed_supers INTEGER DEFAULT 0,
                        feed_added INTEGER DEFAULT 0,
                        feed_type TEXT,
                        feed_amount TEXT,
                        medications_added INTEGER DEFAULT 0,
                        medication_details TEXT,
                        notes TEXT,
                        images TEXT,
                        status TEXT DEFAULT 'completed',
                        user_id INTEGER NOT NULL,
                        created_at TEXT,
                        updated_at TEXT,
                        FOREIGN KEY (hive_id) REFERENCES Hives(hive_id) ON DELETE CASCADE,
                        FOREIGN KEY (user_id) REFERENCES Users(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS InspectionFindings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        inspection_id INTEGER UNIQUE NOT NULL,
                        queen_sighted INTEGER DEFAULT 0,
                        brood_pattern INTEGER DEFAULT 1,
                        honey_stores INTEGER DEFAULT 3,
                        population_strength INTEGER DEFAULT 5,
                        temperament INTEGER DEFAULT 3,
                        diseases_sighted TEXT,
                        varroa_count INTEGER,
                        notes TEXT,
                        FOREIGN KEY (inspection_id) REFERENCES Inspections(id) ON DELETE CASCADE
                    )
                    """
                )

                # Production
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS HiveProduction (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        hive_id TEXT NOT NULL,
                        apiary_id INTEGER NOT NULL,
                        date TEXT NOT NULL,
                        amount REAL NOT NULL,
                        quality TEXT,
                        type TEXT DEFAULT 'honey',
                        notes TEXT,
                        created_by INTEGER NOT NULL,
                        projected_harvest REAL,
                        weight_change REAL,
                        created_at TEXT,
                        FOREIGN KEY (hive_id) REFERENCES Hives(hive_id) ON DELETE CASCADE,
                        FOREIGN KEY (apiary_id) REFERENCES Apiaries(id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS ProductionSummary (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        apiary_id INTEGER NOT NULL,
                        year INTEGER NOT NULL,
                        month INTEGER,
                        total_production REAL DEFAULT 0,
                        change_percent REAL,
                        avg_production REAL,
                        updated_at TEXT,
                        FOREIGN KEY (apiary_id) REFERENCES Apiaries(id) ON DELETE CASCADE
                    )
                    """
                )

                db.execute("CREATE INDEX IF NOT EXISTS idx_apiaries_user ON Apiaries(user_id, name)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_hives_user ON Hives(user_id)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_hives_apiary ON Hives(apiary_id)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_metrics_hive_time ON HiveMetrics(hive_id, timestamp DESC)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_alert_hive_open ON Alert(hive_id, type, resolved_at)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_alert_created ON Alert(created_at DESC)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_inspections_hive ON Inspections(hive_id, inspection_date DESC)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_inspections_user ON Inspections(user_id, inspection_date DESC)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_production_apiary_date ON HiveProduction(apiary_id, date)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_production_hive_date ON HiveProduction(hive_id, date)")
                db.execute("CREATE INDEX IF NOT EXISTS idx_summary_apiary_year ON ProductionSummary(apiary_id, year, month)")
                try:
                    # One open alert per hive and metric type; free-form "other" alerts may repeat
                    db.execute(
                        "CREATE UNIQUE INDEX IF NOT EXISTS uq_alert_open_metric ON Alert(hive_id, type) "
                        "WHERE resolved_at IS NULL AND type != 'other'"
                    )
                except sqlite3.IntegrityError as exc:
                    logger.warning("Open alert uniqueness not enforced; resolve duplicate open alerts first: %s", exc)
        except sqlite3.Error as exc:
            logger.error("Error creating tables: %s", exc)

    # --- User management ------------------------------------------------------
    def insert_user(self, username: str, password_hash: str) -> int | None:
        """Inserts a new user into the Users table."""
        try:
            with self.connection() as conn:
                cur = conn.execute(
                    "INSERT INTO Users (username, password_hash, created_at) VALUES (?, ?, ?)",
                    (username, password_hash, iso_now()),
                )
                return cur.lastrowid
        except sqlite3.Error as exc:
            logger.error("Error inserting user: %s", exc)
            raise

    def get_user_by_username(self, username: str):
        """Fetches a user by username."""
        try:
            db = self.get_db()
            return db.execute("SELECT * FROM Users WHERE username = ?", (username,)).fetchone()
        except sqlite3.Error as exc:
            logger.error("Error fetching user: %s", exc)
            return None

    def get_user_by_id(self, user_id: int):
        try:
            db = self.get_db()
            return db.execute("SELECT id, username, created_at FROM Users WHERE id = ?", (user_id,)).fetchone()
        except sqlite3.Error as exc:
            logger.error("Error fetching user %s: %s", user_id, exc)
            return None
