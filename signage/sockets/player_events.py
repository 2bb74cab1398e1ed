import json
import logging

from flask import current_app, request
from flask_socketio import emit
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from signage.services.checkin_service import (
    CheckinMessage,
    CheckinPersistenceError,
    MalformedCheckin,
    process_checkin,
)
from signage.services.player_service import mark_disconnected

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Hello World! Welcome to PiSignage WebSocket Server"


def _device_events():
    return current_app.extensions["device_events"]


def handle_checkin(settings, status, priority=False, socket_id=None, ip=None):
    try:
        message = CheckinMessage.from_status(
            settings,
            status,
            priority,
            ip=ip,
            socket=socket_id,
            server_name=request.environ.get("SERVER_NAME"),
        )
        result = process_checkin(
            message,
            current_app.extensions["checkin_context"],
            dispatcher=_device_events(),
        )
    except MalformedCheckin as e:
        logger.warning("Dropping status from %s: %s", socket_id, e)
        return {"status": "error", "msg": str(e)}
    except CheckinPersistenceError as e:
        logger.error("Check-in failed: %s", e)
        return {"status": "error", "msg": "Player could not be saved"}
    return {"status": "ok", "push": result.push.value, "created": result.created}


def dispatch_message(args, socket_id=None, ip=None):
    """
    Route one tagged device message: ``[tag, arg1, arg2, ...]``.
    ``args`` may still be the raw JSON text sent by the player.
    """
    if isinstance(args, (str, bytes)):
        try:
            args = json.loads(args)
        except ValueError:
            logger.error("Unable to parse message from client %s: %r", socket_id, args)
            return None
    if not isinstance(args, list) or not args:
        logger.error("Unexpected message shape from client %s: %r", socket_id, args)
        return None

    tag = args[0]
    params = list(args[1:]) + [None] * 3

    if tag == "status":
        return handle_checkin(params[0], params[1], params[2], socket_id=socket_id, ip=ip)
    if tag == "secret_ack":
        _device_events().acknowledge_secret(socket_id, not params[0])
    elif tag == "shell_ack":
        _device_events().acknowledge_shell(socket_id, params[0])
    elif tag == "snapshot":
        _device_events().acknowledge_screenshot(socket_id, params[0])
    elif tag == "upload":
        _device_events().receive_upload(params[0], params[1], params[2])
    else:
        logger.info("Unknown message type from %s: %r", socket_id, tag)
        return None
    return {"status": "ok"}


def register_player_events(socketio):

    # ---------------------------
    # CONNECTION LIFECYCLE
    # ---------------------------
    @socketio.on("connect")
    def handle_connect(auth=None):
        logger.info("Player socket connected: %s", request.sid)
        emit("welcome", {"type": "welcome", "message": WELCOME_MESSAGE})

    @socketio.on("disconnect")
    def handle_disconnect(reason=None):
        try:
            player = mark_disconnected(request.sid)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Error marking socket %s disconnected: %s", request.sid, e)
            return
        if player:
            logger.info("Player %s disconnected", player.cpu_serial_number)

    # ---------------------------
    # PLAYER STATUS (CHECK-IN)
    # ---------------------------
    @socketio.on("status")
    def handle_status(settings=None, status=None, priority=False):
        return handle_checkin(
            settings, status, priority, socket_id=request.sid, ip=request.remote_addr
        )

    # ---------------------------
    # ACKNOWLEDGEMENTS AND UPLOADS
    # ---------------------------
    @socketio.on("secret_ack")
    def handle_secret_ack(ok=None):
        return dispatch_message(["secret_ack", ok], socket_id=request.sid)

    @socketio.on("shell_ack")
    def handle_shell_ack(response=None):
        return dispatch_message(["shell_ack", response], socket_id=request.sid)

    @socketio.on("snapshot")
    def handle_snapshot(response=None):
        return dispatch_message(["snapshot", response], socket_id=request.sid)

    @socketio.on("upload")
    def handle_upload(player_id=None, filename=None, data=None):
        return dispatch_message(["upload", player_id, filename, data], socket_id=request.sid)

    # ---------------------------
    # LEGACY TAGGED MESSAGES
    # ---------------------------
    @socketio.on("message")
    def handle_message(data):
        return dispatch_message(data, socket_id=request.sid, ip=request.remote_addr)
