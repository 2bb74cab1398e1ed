import logging
import os
import socket

import click
from flask import Flask

from config import Config
from extensions import db, socketio

logger = logging.getLogger(__name__)


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    db.init_app(app)
    socketio.init_app(app, cors_allowed_origins="*", async_mode="threading")

    from signage.services.checkin_service import CheckinContext
    from signage.services.device_service import LoggingDeviceEvents

    app.extensions["checkin_context"] = CheckinContext(
        throttle_seconds=app.config["PUSH_THROTTLE_SECONDS"]
    )
    app.extensions["device_events"] = LoggingDeviceEvents()

    from signage.routes import register_routes
    from signage.sockets import register_sockets

    register_routes(app)
    register_sockets(socketio)

    os.makedirs(app.config["MEDIA_DIR"], exist_ok=True)

    with app.app_context():
        # Import models so their tables are known before create_all
        from signage import models  # noqa: F401
        db.create_all()

    @app.cli.command("init-db")
    def init_db():
        """Create tables and make sure the default group exists."""
        from signage.services.group_service import ensure_default_group

        db.create_all()
        group = ensure_default_group()
        click.echo(f"Database ready. Default group id: {group.id}")

    return app


if __name__ == "__main__":
    app = create_app()
    ip = socket.gethostbyname(socket.gethostname())
    port = int(os.getenv("PORT", 3000))
    logger.info("Signage server ready on %s:%s", ip, port)
    socketio.run(app, host="0.0.0.0", port=port, allow_unsafe_werkzeug=True)
