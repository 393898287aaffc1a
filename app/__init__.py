from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.alerts import alerts_api
from app.blueprints.api.apiaries import apiaries_api
from app.blueprints.api.dashboard import dashboard_api
from app.blueprints.api.health import health_api
from app.blueprints.api.hives import hives_api
from app.blueprints.api.inspections import inspections_api
from app.blueprints.api.metrics import metrics_api
from app.blueprints.api.production import production_api
from app.blueprints.api.settings import settings_api
from app.blueprints.api.weather import weather_api
from app.blueprints.auth.routes import auth_bp
from app.config import load_config, setup_logging
from app.constants import API_PREFIX, AUTH_PREFIX
from app.extensions import init_extensions, socketio


def create_app(config_overrides: dict[str, Any] | None = None, *, bootstrap_runtime: bool = False) -> Flask:
    """Build the Flask application.

    Args:
        config_overrides: ``AppConfig`` attribute overrides, keys are lower-cased
        bootstrap_runtime: Start the background scheduler even when
            ``enable_scheduler`` is off (used by ``run_server``)
    """
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key.lower(), value)

    # Configure logging early so container startup (schema, scheduler jobs)
    # is visible in the terminal and smart_nyuki.log.
    setup_logging(debug=config.DEBUG)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.config["SESSION_COOKIE_HTTPONLY"] = True
    flask_app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    flask_app.config["SESSION_COOKIE_SECURE"] = config.environment == "production"

    # Initialize Socket.IO BEFORE building ServiceContainer (EmitterService needs it)
    init_extensions(flask_app, config.socketio_cors_origins)

    from app.services.container import ServiceContainer

    start_scheduler = True if bootstrap_runtime else None
    container = ServiceContainer.build(config, start_scheduler=start_scheduler)
    container.database.init_app(flask_app)
    flask_app.config["CONTAINER"] = container

    # ── Graceful shutdown handlers ──────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logging.info("Received %s, shutting down", sig_name)
        _graceful_shutdown(sig_name)
        raise SystemExit(0)

    # Register atexit (covers normal interpreter exit)
    atexit.register(_graceful_shutdown, "atexit")

    # Signal handlers can only be installed from the main thread
    if threading.current_thread() is threading.main_thread():
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(OSError, ValueError):
                signal.signal(sig, _signal_handler)

    # API and auth paths always answer with the JSON envelope; domain
    # exceptions carry their own status and code.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        from app.domain.exceptions import NyukiError
        from app.utils.http import domain_error_response, error_response, safe_error

        if not request.path.startswith(("/api/", "/auth/")):
            if isinstance(exc, HTTPException):
                return exc
            return safe_error(exc, 500, context="unhandled")

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            code = exc.name.upper().replace(" ", "_")
            return error_response(exc.description or "Request failed", status, code=code)

        if isinstance(exc, NyukiError):
            return domain_error_response(exc, "unhandled")

        return safe_error(exc, 500, context="unhandled")

    @flask_app.errorhandler(413)
    def _handle_too_large(_exc):
        from app.utils.http import error_response

        return error_response("Request payload too large", 413, code="PAYLOAD_TOO_LARGE")

    # ── Blueprints ──────────────────────────────────────────────────
    flask_app.register_blueprint(auth_bp, url_prefix=AUTH_PREFIX)

    flask_app.register_blueprint(apiaries_api, url_prefix=f"{API_PREFIX}/apiaries")
    flask_app.register_blueprint(hives_api, url_prefix=f"{API_PREFIX}/hives")
    flask_app.register_blueprint(metrics_api, url_prefix=f"{API_PREFIX}/metrics")
    flask_app.register_blueprint(alerts_api, url_prefix=f"{API_PREFIX}/alerts")
    flask_app.register_blueprint(inspections_api, url_prefix=f"{API_PREFIX}/inspections")
    flask_app.register_blueprint(production_api, url_prefix=f"{API_PREFIX}/production")
    flask_app.register_blueprint(settings_api, url_prefix=f"{API_PREFIX}/settings")
    flask_app.register_blueprint(dashboard_api, url_prefix=f"{API_PREFIX}/dashboard")
    flask_app.register_blueprint(weather_api, url_prefix=f"{API_PREFIX}/weather")
    flask_app.register_blueprint(health_api, url_prefix=f"{API_PREFIX}/health")

    # Register Socket.IO event handlers (must be after socketio init)
    from app.socketio import register_handlers

    register_handlers()

    for bp_name in flask_app.blueprints:
        logging.debug("Registered blueprint: %s", bp_name)

    # ── Backward-compat: rewrite /api/* → /api/v1/* ─────────────
    # WSGI-level rewrite (no HTTP redirect, fully transparent to clients).
    _original_wsgi = flask_app.wsgi_app

    def _legacy_api_rewrite(environ, start_response):
        path = environ.get("PATH_INFO", "")
        if path.startswith("/api/") and not path.startswith(f"{API_PREFIX}/"):
            environ["PATH_INFO"] = API_PREFIX + path[4:]
        return _original_wsgi(environ, start_response)

    flask_app.wsgi_app = _legacy_api_rewrite  # type: ignore[assignment]

    logger = logging.getLogger(__name__)
    logger.info("%s application initialized successfully.", config.app_name)

    return flask_app


__all__ = ["create_app", "socketio"]
