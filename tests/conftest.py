import pytest

from app import create_app
from config import TestingConfig
from extensions import db, socketio
from signage.models import Group


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def app(tmp_path):
    media_dir = tmp_path / "media"

    class Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'signage-test.db'}"
        MEDIA_DIR = str(media_dir)

    app = create_app(Config)
    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def socket_client(app):
    sc = socketio.test_client(app)
    yield sc
    if sc.is_connected():
        sc.disconnect()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def default_group(ctx):
    group = Group(name="default")
    db.session.add(group)
    db.session.commit()
    return group
