"""
Configuration for Smart Nyuki
=============================
Main application runtime settings and service configurations.
Values come from ``SMART_NYUKI_*`` environment variables with sensible defaults.
Setups the logging configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    app_name: str = field(default_factory=lambda: os.getenv("SMART_NYUKI_APP_NAME", "Smart Nyuki"))
    environment: str = field(default_factory=lambda: os.getenv("SMART_NYUKI_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("SMART_NYUKI_SECRET_KEY", "SmartNyukiDevSecretKey"))
    database_path: str = field(
        default_factory=lambda: os.getenv("SMART_NYUKI_DATABASE_PATH", "database/smart_nyuki.db")
    )

    # SQLite memory tuning (8 MB cache, 32 MB mmap).
    db_cache_size_kb: int = field(default_factory=lambda: _env_int("SMART_NYUKI_DB_CACHE_SIZE_KB", 8_000))
    db_mmap_size_bytes: int = field(default_factory=lambda: _env_int("SMART_NYUKI_DB_MMAP_SIZE_BYTES", 33_554_432))

    socketio_cors_origins: str = field(default_factory=lambda: os.getenv("SMART_NYUKI_SOCKETIO_CORS", "*"))

    cache_enabled: bool = field(default_factory=lambda: _env_bool("SMART_NYUKI_CACHE_ENABLED", True))
    cache_ttl_seconds: int = field(default_factory=lambda: _env_int("SMART_NYUKI_CACHE_TTL", 30))
    cache_maxsize: int = field(default_factory=lambda: _env_int("SMART_NYUKI_CACHE_MAXSIZE", 128))

    # Session Configuration
    session_lifetime_minutes: int = field(default_factory=lambda: _env_int("SMART_NYUKI_SESSION_LIFETIME", 60 * 24))

    # Alert evaluation loop
    enable_scheduler: bool = field(default_factory=lambda: _env_bool("SMART_NYUKI_ENABLE_SCHEDULER", True))
    metrics_check_interval_seconds: int = field(
        default_factory=lambda: _env_int("SMART_NYUKI_METRICS_CHECK_INTERVAL", 30 * 60)
    )
    metrics_check_min_interval_seconds: int = field(
        default_factory=lambda: _env_int("SMART_NYUKI_METRICS_CHECK_MIN_INTERVAL", 10 * 60)
    )
    metrics_stale_after_minutes: int = field(
        default_factory=lambda: _env_int("SMART_NYUKI_METRICS_STALE_AFTER_MINUTES", 120)
    )
    alert_retention_days: int = field(default_factory=lambda: _env_int("SMART_NYUKI_ALERT_RETENTION_DAYS", 30))
    metrics_retention_days: int = field(default_factory=lambda: _env_int("SMART_NYUKI_METRICS_RETENTION_DAYS", 365))

    # Device ingestion. Empty token disables the check (development only).
    ingest_token: str = field(default_factory=lambda: os.getenv("SMART_NYUKI_INGEST_TOKEN", ""))

    # Weather provider (WorldWeatherOnline)
    weather_api_key: str = field(default_factory=lambda: os.getenv("SMART_NYUKI_WEATHER_API_KEY", ""))
    weather_api_url: str = field(
        default_factory=lambda: os.getenv(
            "SMART_NYUKI_WEATHER_API_URL",
            "https://api.worldweatheronline.com/premium/v1/weather.ashx",
        )
    )
    weather_timeout_seconds: float = field(default_factory=lambda: _env_float("SMART_NYUKI_WEATHER_TIMEOUT", 10.0))
    weather_cache_ttl_seconds: int = field(default_factory=lambda: _env_int("SMART_NYUKI_WEATHER_CACHE_TTL", 600))

    backup_dir: str = field(default_factory=lambda: os.getenv("SMART_NYUKI_BACKUP_DIR", "backups"))

    DEBUG: bool = field(default_factory=lambda: _env_bool("SMART_NYUKI_DEBUG", False))
    audit_log_path: str = field(default_factory=lambda: os.getenv("SMART_NYUKI_AUDIT_LOG_PATH", "logs/audit.log"))
    log_level: str = field(default_factory=lambda: os.getenv("SMART_NYUKI_LOG_LEVEL", "INFO"))

    # Upload / request size limits
    max_upload_mb: int = field(default_factory=lambda: _env_int("SMART_NYUKI_MAX_UPLOAD_MB", 16))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="SmartNyukiDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        # SECURITY: Fail fast if using default secret key in production
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set SMART_NYUKI_SECRET_KEY environment variable to a secure random value.\n"
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        secret = self.secret_key or os.getenv("FLASK_SECRET_KEY", "")
        if not secret:
            raise RuntimeError(
                "Missing SMART_NYUKI_SECRET_KEY or FLASK_SECRET_KEY environment variable. "
                "Production systems must set an explicit secret key."
            )

        return {
            "ENV": self.environment,
            "SECRET_KEY": secret,
            "DATABASE_PATH": self.database_path,
            "SOCKETIO_CORS_ALLOWED_ORIGINS": self.socketio_cors_origins,
            "AUDIT_LOG_PATH": self.audit_log_path,
            "DEBUG": self.DEBUG,
            "APP_NAME": self.app_name,
            "MAX_CONTENT_LENGTH": self.max_upload_mb * 1024 * 1024,
            "PERMANENT_SESSION_LIFETIME": self.session_lifetime_minutes * 60,
        }


def setup_logging(debug: bool = False) -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else logging.INFO

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Keep existing handlers but avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "smart_nyuki_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "smart_nyuki_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "smart_nyuki_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if not has_file and _env_bool("SMART_NYUKI_LOG_TO_FILE", True):
        os.makedirs("logs", exist_ok=True)
        file_handler = RotatingFileHandler(
            "logs/smart_nyuki.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "smart_nyuki_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    # Ensure handler levels follow the desired log level
    for handler in root.handlers:
        if getattr(handler, "name", "") in {"smart_nyuki_console", "smart_nyuki_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(log_level)}")

    if _env_bool("SMART_NYUKI_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    # Socket.IO polling chatter
    if _env_bool("SMART_NYUKI_SILENCE_SOCKETIO", True):
        logging.getLogger("socketio").setLevel(logging.WARNING)
        logging.getLogger("engineio").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()
