import logging
from datetime import datetime, timezone

from sqlalchemy.orm import validates

from extensions import db

logger = logging.getLogger(__name__)

# Wire (device) field name -> column
COLUMN_FIELDS = {
    "cpuSerialNumber": "cpu_serial_number",
    "name": "name",
    "ip": "ip",
    "myIpAddress": "my_ip_address",
    "serverName": "server_name",
    "socket": "socket",
    "lastUpload": "last_upload",
    "lastReported": "last_reported",
    "isConnected": "is_connected",
    "newSocketIo": "new_socket_io",
    "webSocket": "web_socket",
    "version": "version",
    "platform_version": "platform_version",
    "tvStatus": "tv_status",
    "currentPlaylist": "current_playlist",
    "playlistOn": "playlist_on",
    "installation": "installation",
    "registered": "registered",
    "serverServiceDisabled": "server_service_disabled",
    "licensed": "licensed",
    "labels": "labels",
}

# Never written back from a record
READ_ONLY_FIELDS = {"_id", "createdAt"}

BOOLEAN_FIELDS = {
    "isConnected",
    "newSocketIo",
    "webSocket",
    "tvStatus",
    "playlistOn",
    "registered",
    "serverServiceDisabled",
    "licensed",
}
INTEGER_FIELDS = {"lastUpload"}

TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _as_bool(value):
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise ValueError(f"not a boolean: {value!r}")


def _as_int(value):
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, int):
        return value
    return int(float(value))


def _as_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise ValueError(f"not a date: {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            value = float(text)
        except ValueError:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as sent by the players
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    raise ValueError(f"not a date: {value!r}")


def _as_labels(value):
    if value is None:
        return []
    if isinstance(value, list):
        return value
    raise ValueError(f"not a list: {value!r}")


def _as_text(value):
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float, bool)):
        return str(value)
    raise ValueError(f"not a scalar: {value!r}")


def cast_field(field, value):
    """Cast a device value to the type of its column. Raises ValueError or TypeError."""
    if field in BOOLEAN_FIELDS:
        return _as_bool(value)
    if field in INTEGER_FIELDS:
        return _as_int(value)
    if field == "lastReported":
        return _as_datetime(value)
    if field == "labels":
        return _as_labels(value)
    return _as_text(value)


class Player(db.Model):
    """
    One physical signage player, keyed by its hardware serial number.

    Fields the device reports that have no column of their own are kept in
    ``reported``; ``to_record`` and ``apply_record`` translate between the
    row and the flat, device-shaped dict used by the check-in processor.
    """
    __tablename__ = "players"

    id = db.Column(db.Integer, primary_key=True)
    cpu_serial_number = db.Column(db.String(100), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200))
    ip = db.Column(db.String(64))
    my_ip_address = db.Column(db.String(64))
    server_name = db.Column(db.String(64))
    socket = db.Column(db.String(100), index=True)
    last_upload = db.Column(db.BigInteger, default=0)
    last_reported = db.Column(db.DateTime)
    is_connected = db.Column(db.Boolean, default=False, index=True)
    new_socket_io = db.Column(db.Boolean, default=False)
    web_socket = db.Column(db.Boolean, default=False)
    version = db.Column(db.String(50))
    platform_version = db.Column(db.String(50))
    tv_status = db.Column(db.Boolean)
    current_playlist = db.Column(db.String(200))
    playlist_on = db.Column(db.Boolean)
    installation = db.Column(db.String(100), index=True)

    # Denormalized copy of the owning group, may go stale on rename
    group_id = db.Column(db.Integer, index=True)
    group_name = db.Column(db.String(100), default="default")

    registered = db.Column(db.Boolean, default=False)
    server_service_disabled = db.Column(db.Boolean, default=False)
    licensed = db.Column(db.Boolean, default=False)
    labels = db.Column(db.JSON, default=list)

    reported = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    @validates("cpu_serial_number")
    def validate_serial(self, key, serial):
        if not serial:
            raise ValueError("cpuSerialNumber cannot be blank")
        return serial

    def to_record(self):
        record = dict(self.reported or {})
        for field, column in COLUMN_FIELDS.items():
            record[field] = getattr(self, column)
        record["labels"] = list(self.labels or [])
        record["group"] = {"_id": self.group_id, "name": self.group_name}
        record["_id"] = self.id
        record["createdAt"] = self.created_at
        return record

    def apply_record(self, record):
        reported = dict(self.reported or {})
        for field, value in record.items():
            if field in READ_ONLY_FIELDS:
                continue
            if field == "group":
                group = value if isinstance(value, dict) else {}
                self.group_id = group.get("_id")
                self.group_name = group.get("name") or "default"
            elif field in COLUMN_FIELDS:
                try:
                    value = cast_field(field, value)
                except (ValueError, TypeError, OverflowError, OSError):
                    logger.warning(
                        "Dropping %s=%r for player %s, wrong type",
                        field, value, self.cpu_serial_number,
                    )
                    continue
                setattr(self, COLUMN_FIELDS[field], value)
            else:
                reported[field] = value
        # Reassign so the JSON column is flagged dirty
        self.reported = reported
        return self
