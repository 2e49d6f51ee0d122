import os
import sys
import pytest

# Ensure the backend root (containing the `baller` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from baller import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret-key-for-baller-server-tests')
    JWT_SECRET = None
    TOKEN_TTL_DAYS = 30
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/ws'
    CHAT_MAX_LENGTH = 120
    GUEST_SUFFIX_LENGTH = 4
    LEADERBOARD_SIZE = 50


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # Keep no app context open across the test: each request must get its
    # own context (and its own `g`) or Flask-Login reuses the previous user.
    with application.app_context():
        # Ensure models are imported so tables are created
        import baller.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def register(client):
    """Register an account over HTTP and return its bearer token."""
    def _register(username, password='secret', team_name=None):
        res = client.post('/api/register', json={
            'username': username,
            'password': password,
            'teamName': team_name or '',
        })
        assert res.status_code == 201, res.get_json()
        return res.get_json()['token']
    return _register


@pytest.fixture()
def auth_headers():
    def _headers(token):
        return {'Authorization': f'Bearer {token}'}
    return _headers


@pytest.fixture()
def sio_factory(flask_app):
    """Create Socket.IO test clients on /ws; all are disconnected on teardown."""
    created = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        assert test_client.is_connected('/ws')
        created.append(test_client)
        return test_client

    yield _connect
    for test_client in created:
        if test_client.is_connected('/ws'):
            test_client.disconnect(namespace='/ws')
