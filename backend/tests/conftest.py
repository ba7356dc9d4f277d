import os
import sys
import pytest

# Ensure the backend root (containing the `arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from arena import create_app, db, socketio, SOCKETIO_NAMESPACE
from arena.errors import PersistenceError


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = 'http://localhost:5173'
    TOKEN_MAX_AGE_SEC = 0
    LEADERBOARD_LIMIT = 3
    MAX_MESSAGE_LENGTH = 20
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import arena.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def lobby(flask_app):
    return flask_app.extensions['arena.lobby']


@pytest.fixture()
def make_user(flask_app):
    from arena.models import User

    def _make(username, password='password'):
        user = User.query.filter_by(username=username).first()
        if user is None:
            user = User(username=username)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
        return user
    return _make


@pytest.fixture()
def connect(flask_app, make_user):
    """Open an authenticated Socket.IO test client for ``username``."""
    opened = []

    def _connect(username, authenticate=True):
        make_user(username)
        sio_client = socketio.test_client(flask_app, namespace=SOCKETIO_NAMESPACE)
        opened.append(sio_client)
        if authenticate:
            token = flask_app.extensions['arena.users'].issue_token(username)
            sio_client.emit('authenticate', token, namespace=SOCKETIO_NAMESPACE)
        return sio_client

    yield _connect
    for sio_client in opened:
        if sio_client.is_connected(SOCKETIO_NAMESPACE):
            sio_client.disconnect(namespace=SOCKETIO_NAMESPACE)


def received(sio_client, name=None):
    """Drain a test client; return payloads of events called ``name``."""
    packets = sio_client.get_received(SOCKETIO_NAMESPACE)
    if name is None:
        return [(pkt['name'], pkt['args'][0] if pkt['args'] else None) for pkt in packets]
    return [pkt['args'][0] if pkt['args'] else None for pkt in packets if pkt['name'] == name]


class RecordingEmitter:
    """Stands in for ``socketio.emit`` when driving the lobby directly."""

    def __init__(self):
        self.sent = []

    def __call__(self, event, payload=None, to=None):
        self.sent.append((to, event, payload))

    def to(self, sid, event=None):
        return [p for t, e, p in self.sent if t == sid and (event is None or e == event)]

    def broadcasts(self, event):
        return [p for t, e, p in self.sent if t is None and e == event]

    def events(self, event):
        return [(t, p) for t, e, p in self.sent if e == event]

    def clear(self):
        self.sent.clear()


class FakeStats:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def increment_stat(self, username, kind):
        self.calls.append((username, kind))
        if self.fail:
            raise PersistenceError('database unavailable')


@pytest.fixture()
def emitter():
    return RecordingEmitter()


@pytest.fixture()
def stats():
    return FakeStats()
