"""Player check-in processing: reconcile a status report with the stored
player, assign the default group to newcomers and decide whether the
player should get its group configuration pushed right now."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from signage.models import Group, Player
from signage.services import group_service, player_service

logger = logging.getLogger(__name__)

DEFAULT_GROUP_NAME = "default"
LOCAL_INSTALLATION = "local"
THROTTLE_SECONDS = 60.0

# Carried by the transport, never stored on the player
TRANSPORT_ONLY_FIELDS = ("priority", "request")

# Managed by the server; a device report cannot change them
SERVER_OWNED_FIELDS = (
    "_id",
    "createdAt",
    "group",
    "installation",
    "registered",
    "serverServiceDisabled",
    "licensed",
)


class CheckinError(Exception):
    """Base class for check-in failures."""


class MalformedCheckin(CheckinError):
    """The message cannot identify a player."""


class CheckinPersistenceError(CheckinError):
    """The player store rejected or could not take the write."""


class PushDecision(Enum):
    NOT_EVALUATED = "not_evaluated"
    GROUP_MISSING = "group_missing"
    NOW = "now"
    SUPPRESSED = "suppressed"


@dataclass
class CheckinMessage:
    serial: Optional[str]
    settings: Dict[str, Any] = field(default_factory=dict)
    status: Dict[str, Any] = field(default_factory=dict)
    priority: bool = False
    request: bool = False
    ip: Optional[str] = None
    socket: Optional[str] = None
    server_name: Optional[str] = None
    reported_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_status(
        cls,
        settings: Optional[Dict[str, Any]],
        status: Optional[Dict[str, Any]],
        priority: Any = False,
        *,
        ip: Optional[str] = None,
        socket: Optional[str] = None,
        server_name: Optional[str] = None,
    ) -> "CheckinMessage":
        if settings is not None and not isinstance(settings, dict):
            raise MalformedCheckin(f"settings must be an object, got {type(settings).__name__}")
        if status is not None and not isinstance(status, dict):
            raise MalformedCheckin(f"status must be an object, got {type(status).__name__}")
        settings = dict(settings or {})
        status = dict(status or {})
        combined = {**settings, **status}

        serial = combined.get("cpuSerialNumber")
        if isinstance(serial, (dict, list, bool)):
            raise MalformedCheckin(f"cpuSerialNumber must be a string, got {serial!r}")
        return cls(
            serial=str(serial) if serial not in (None, "") else None,
            settings=settings,
            status=status,
            priority=bool(priority),
            request=bool(combined.get("request")),
            ip=ip,
            socket=socket,
            server_name=server_name,
        )

    @property
    def last_upload(self) -> Optional[int]:
        return self.fields().get("lastUpload")

    def fields(self) -> Dict[str, Any]:
        """Flatten the message into a device-shaped record; status wins over settings."""
        record: Dict[str, Any] = {
            "lastReported": self.reported_at,
            "newSocketIo": True,
            "webSocket": True,
        }
        if self.ip is not None:
            record["ip"] = self.ip
        if self.socket is not None:
            record["socket"] = self.socket
        if self.server_name is not None:
            record["serverName"] = self.server_name
        record.update(self.settings)
        record.update(self.status)
        for key in TRANSPORT_ONLY_FIELDS:
            record.pop(key, None)
        if self.serial:
            record["cpuSerialNumber"] = self.serial
        return record


@dataclass
class CheckinResult:
    player: Player
    created: bool
    push: PushDecision
    group: Optional[Group] = None


class CheckinContext:
    """
    Process-wide check-in state: the set of players seen since start-up,
    the last config push time per player and one lock per serial number.
    Nothing is evicted; the size is bounded by the number of physical
    players that ever report to this process.
    """

    def __init__(self, throttle_seconds: float = THROTTLE_SECONDS, clock=time.monotonic):
        self.throttle_seconds = throttle_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._active_players: set[str] = set()
        self._last_push: Dict[str, float] = {}
        self._serial_locks: Dict[str, threading.Lock] = {}

    def lock_for(self, serial: str) -> threading.Lock:
        with self._lock:
            return self._serial_locks.setdefault(serial, threading.Lock())

    def mark_active(self, player_id: str) -> None:
        with self._lock:
            self._active_players.add(player_id)

    def is_active(self, player_id: str) -> bool:
        with self._lock:
            return player_id in self._active_players

    def active_count(self) -> int:
        with self._lock:
            return len(self._active_players)

    def allow_push(self, player_id: str, priority: bool = False) -> bool:
        now = self._clock()
        with self._lock:
            last = self._last_push.get(player_id)
            if priority or last is None or now - last >= self.throttle_seconds:
                self._last_push[player_id] = now
                return True
            return False


def _as_number(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def reconcile(stored: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Merge an incoming report onto a stored player record and return a new record."""
    incoming = dict(incoming)
    for key in SERVER_OWNED_FIELDS:
        incoming.pop(key, None)

    new_upload = _as_number(incoming.get("lastUpload"))
    old_upload = _as_number(stored.get("lastUpload")) or 0.0
    if new_upload is None or new_upload < old_upload:
        incoming.pop("lastUpload", None)

    if not incoming.get("name"):
        incoming.pop("name", None)

    merged = {**stored, **incoming}
    if not merged.get("isConnected"):
        merged["isConnected"] = True
    return merged


def build_new_record(
    incoming: Dict[str, Any],
    group: Optional[Group],
    *,
    default_group_name: str = DEFAULT_GROUP_NAME,
    installation: str = LOCAL_INSTALLATION,
) -> Dict[str, Any]:
    record = {k: v for k, v in incoming.items() if k not in SERVER_OWNED_FIELDS}
    if "lastUpload" in record and _as_number(record["lastUpload"]) is None:
        del record["lastUpload"]
    if group is not None:
        record["group"] = group.to_ref()
    else:
        record["group"] = {"name": default_group_name}
    record["installation"] = installation
    record["isConnected"] = True
    return record


def _resolve_default_group(name: str) -> Optional[Group]:
    try:
        group = group_service.find_group_by_name(name)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning("Default group lookup failed, using fallback reference: %s", e)
        return None
    if group is None:
        logger.warning("No '%s' group found, new player gets a fallback group reference", name)
    return group


def _decide_push(record, message: CheckinMessage, context: CheckinContext):
    if record.get("registered") and not message.request:
        return PushDecision.NOT_EVALUATED, None

    group_id = (record.get("group") or {}).get("_id")
    try:
        group = group_service.find_group(group_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning("Group lookup for player %s failed: %s", message.serial, e)
        group = None
    if group is None:
        logger.warning(
            "Group %s of player %s not found, skipping config push", group_id, message.serial
        )
        return PushDecision.GROUP_MISSING, None

    if context.allow_push(message.serial, priority=message.priority):
        logger.info("Config push for player %s (group %s)", message.serial, group.name)
        return PushDecision.NOW, group

    logger.debug("Config push for player %s suppressed, sent recently", message.serial)
    return PushDecision.SUPPRESSED, group


def process_checkin(message: CheckinMessage, context: CheckinContext, dispatcher=None) -> CheckinResult:
    """
    Apply one status report from a player.

    Raises MalformedCheckin when the message has no serial number and
    CheckinPersistenceError when the player store fails on lookup or save.
    After a failed save the active set and push timestamps are not rolled back.
    """
    if not message.serial:
        raise MalformedCheckin("check-in without cpuSerialNumber")

    default_group_name = current_app.config.get("DEFAULT_GROUP_NAME", DEFAULT_GROUP_NAME)
    installation = current_app.config.get("DEFAULT_INSTALLATION", LOCAL_INSTALLATION)
    incoming = message.fields()

    with context.lock_for(message.serial):
        try:
            player = player_service.find_player_by_serial(message.serial)
        except SQLAlchemyError as e:
            db.session.rollback()
            raise CheckinPersistenceError(
                f"could not look up player {message.serial}: {e}"
            ) from e
        created = player is None
        if created:
            group = _resolve_default_group(default_group_name)
            record = build_new_record(
                incoming,
                group,
                default_group_name=default_group_name,
                installation=installation,
            )
            player = Player()
        else:
            record = reconcile(player.to_record(), incoming)

        # License gating
        if record.get("serverServiceDisabled"):
            record["socket"] = None

        context.mark_active(message.serial)

        push, group = _decide_push(record, message, context)

        player.apply_record(record)
        try:
            player_service.save_player(player)
        except SQLAlchemyError as e:
            raise CheckinPersistenceError(
                f"could not save player {message.serial}: {e}"
            ) from e

    logger.info(
        "Check-in from %s (%s), push: %s",
        message.serial,
        "new" if created else "known",
        push.value,
    )
    if push is PushDecision.NOW and dispatcher is not None:
        dispatcher.send_config(player, group)

    return CheckinResult(player=player, created=created, push=push, group=group)
