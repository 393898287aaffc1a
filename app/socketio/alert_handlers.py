"""app.socketio.alert_handlers

Room membership for the /alerts namespace. A client joins ``user_<id>`` on
connect when its Flask session is logged in; anonymous clients are refused.
"""

import logging

from flask import request, session
from flask_socketio import join_room, leave_room

from app.extensions import socketio
from app.utils.emitters import SOCKETIO_NAMESPACE_ALERTS, user_room

logger = logging.getLogger(__name__)


@socketio.on("connect", namespace=SOCKETIO_NAMESPACE_ALERTS)
def handle_alerts_connect(auth=None):
    user_id = session.get("user_id")
    if user_id is None:
        logger.info("Refusing anonymous client %s on %s", request.sid, SOCKETIO_NAMESPACE_ALERTS)
        return False
    join_room(user_room(int(user_id)))
    logger.info("Client %s joined %s (%s)", request.sid, user_room(int(user_id)), SOCKETIO_NAMESPACE_ALERTS)
    return True


@socketio.on("disconnect", namespace=SOCKETIO_NAMESPACE_ALERTS)
def handle_alerts_disconnect(*_args):
    user_id = session.get("user_id")
    if user_id is not None:
        leave_room(user_room(int(user_id)))
    logger.info("Client %s disconnected from %s", request.sid, SOCKETIO_NAMESPACE_ALERTS)
