"""
Socket.IO Event Handlers
========================

Namespaces:
- /alerts - new and resolved hive alerts, one room per user

Usage:
    Import this module after socketio.init_app() to register all handlers.

    from app.socketio import register_handlers
    register_handlers()
"""

import logging

logger = logging.getLogger(__name__)

_registered = False


def register_handlers() -> None:
    """
    Register all Socket.IO event handlers.

    This function must be called AFTER socketio.init_app() to ensure
    the Flask app context is available for all handlers.
    """
    global _registered
    if _registered:
        return
    # Import handlers to trigger @socketio.on() decorator registration
    from . import alert_handlers  # noqa: F401

    _registered = True
    logger.info("Socket.IO handlers registered")
