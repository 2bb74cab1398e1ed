import logging

from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from signage.models import LogEntry

logger = logging.getLogger(__name__)


class DeviceEvents:
    """
    Hooks the socket transport calls for device traffic other than status
    check-ins. A device-management layer can subclass this and register the
    instance as ``app.extensions["device_events"]``.
    """

    def acknowledge_secret(self, socket_id, has_error):
        raise NotImplementedError

    def acknowledge_shell(self, socket_id, response):
        raise NotImplementedError

    def acknowledge_screenshot(self, socket_id, response):
        raise NotImplementedError

    def receive_upload(self, player_id, filename, data):
        raise NotImplementedError

    def send_config(self, player, group):
        raise NotImplementedError


class LoggingDeviceEvents(DeviceEvents):
    """Logs every device event and keeps a copy in the ``log_entries`` table."""

    source = "device"

    def _record(self, message):
        logger.info(message)
        try:
            db.session.add(LogEntry(source=self.source, message=message))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning("Could not persist device log entry: %s", e)

    def acknowledge_secret(self, socket_id, has_error):
        self._record(f"Secret acknowledgment for {socket_id}, error: {has_error}")

    def acknowledge_shell(self, socket_id, response):
        self._record(f"Shell acknowledgment for {socket_id}: {response}")

    def acknowledge_screenshot(self, socket_id, response):
        self._record(f"Screenshot for {socket_id}: {response}")

    def receive_upload(self, player_id, filename, data):
        size = len(data) if data else 0
        self._record(f"Upload for {player_id}: {filename}, size: {size}")

    def send_config(self, player, group):
        # Config payload is not defined yet, only the decision is recorded
        self._record(
            f"Config push for {player.cpu_serial_number} (group {group.name})"
        )
