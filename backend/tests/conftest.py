import os
import sys
import pytest

# Ensure the backend root (containing the `liehard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from liehard import create_app, db, socketio
from liehard.store import MemoryDocumentStore, get_store
from factories import PLAYER_NAMES, loaded_document


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STATE_STORE = 'sql'
    LIVE_DOCUMENT_ID = 'live'
    STRICT_TRANSITIONS = False
    PLAYER_NAMES = PLAYER_NAMES
    ROUND4_OBJECT_TITLE = 'A Well-Loved Stuffed Bear'
    ROUND4_OBJECT_IMAGE = '/bear.png'
    ROUND4_REAL_OWNER_ID = 2


class StrictTestConfig(TestConfig):
    STRICT_TRANSITIONS = True


def _make_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        # Ensure models are imported so tables are created
        import liehard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def store():
    return MemoryDocumentStore('live', loaded_document())


@pytest.fixture()
def flask_app():
    yield from _make_app(TestConfig)


@pytest.fixture()
def strict_app():
    yield from _make_app(StrictTestConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def strict_client(strict_app):
    get_store().write_whole(loaded_document())
    return strict_app.test_client()


@pytest.fixture()
def loaded_client(flask_app, client):
    """Client whose live document already carries the imported round content."""
    get_store().write_whole(loaded_document())
    return client


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
