import os
import sys
import pytest

# Ensure the backend root (containing the `planning_poker` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from planning_poker import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ESTIMATE_DECK = '1,2,3,5,8,13,21'
    ROOM_CODE_LENGTH = 6
    MAX_NAME_LENGTH = 32
    ROOM_RESERVATION_TTL_SEC = 600
    CORS_ALLOWED_ORIGINS = '*'
    SOCKETIO_ASYNC_MODE = 'threading'
    LOG_LEVEL = 'DEBUG'


class RecordingPublisher:
    """Collects what the registry would have sent over Socket.IO."""

    def __init__(self):
        self.broadcasts = []
        self.sent = []

    def broadcast(self, room_id, event, payload):
        self.broadcasts.append((room_id, event, payload))

    def send(self, connection_id, event, payload):
        self.sent.append((connection_id, event, payload))

    def last(self, event=None):
        for item in reversed(self.broadcasts):
            if event is None or item[1] == event:
                return item
        return None


@pytest.fixture()
def publisher():
    return RecordingPublisher()


@pytest.fixture()
def registry(publisher):
    from planning_poker.services.rooms import RoomRegistry
    return RoomRegistry(publisher)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    """Build extra Socket.IO test clients; all are disconnected afterwards."""
    created = []

    def make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        created.append(test_client)
        return test_client

    yield make
    for test_client in created:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def sio_client(sio_factory):
    return sio_factory()
