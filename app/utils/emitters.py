"""
WebSocket Emitters
=====================================

Purpose:
    Centralized WebSocket emitter service leveraging Socket.IO Server.

Features:
- Emit to user-specific Socket.IO rooms or broadcast globally.
- Explicit event namespace management.
- Alert creation events for the dashboard bell and toast.

Usage:
    Instantiate EmitterService with the SocketIO instance and call
    emit_alert_event() when a new alert row is stored.
"""

import logging
from typing import Any

from flask_socketio import SocketIO

logger = logging.getLogger("emitters")

# Socket.IO Namespace Constants
SOCKETIO_NAMESPACE_ALERTS = "/alerts"

# Event names
WS_EVENT_ALERT_CREATED = "alert_created"
WS_EVENT_ALERT_RESOLVED = "alert_resolved"


def user_room(user_id: int) -> str:
    return f"user_{user_id}"


class EmitterService:
    """
    Centralized WebSocket Emitter Service.

    Attributes:
        sio: The Socket.IO SocketIO instance for emitting events.
    """

    def __init__(self, sio: SocketIO | None):
        self.sio = sio

    def emit(
        self,
        event: str,
        payload: dict,
        room: str | None = None,
        namespace: str = "/",
    ) -> bool:
        """
        Emit a Socket.IO event.

        Args:
            event (str): Event name (e.g., "alert_created").
            payload (dict): JSON serializable data to send.
            room (Optional[str]): Socket.IO room identifier. Broadcasts if None.
            namespace (str): Socket.IO namespace to emit under (default "/").

        Returns:
            True when the event was handed to Socket.IO.
        """
        if self.sio is None:
            return False
        try:
            logger.debug("Emitting event='%s' to namespace='%s' room='%s'", event, namespace, room or "broadcast")
            self.sio.emit(event, payload, to=room, namespace=namespace)
            return True
        except Exception as e:
            # Emission failures never propagate to the caller
            logger.exception("[Emitter] Failed to emit event '%s' to room '%s': %s", event, room, e)
            return False

    def emit_to_user(
        self,
        user_id: int,
        event: str,
        payload: dict,
        namespace: str = "/",
    ) -> bool:
        """Emit an event to a specific user's room ('user_<user_id>')."""
        return self.emit(event=event, payload=payload, room=user_room(user_id), namespace=namespace)

    def emit_alert_event(self, user_id: int, alert: dict[str, Any], *, event: str = WS_EVENT_ALERT_CREATED) -> bool:
        """Push an alert row to its owner on the /alerts namespace."""
        sent = self.emit_to_user(user_id=user_id, event=event, payload=alert, namespace=SOCKETIO_NAMESPACE_ALERTS)
        if sent:
            logger.info("[Emitter] Alert event '%s' emitted to user '%s'", event, user_id)
        return sent
