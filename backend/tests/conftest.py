import os
import sys
import pytest

# Ensure the backend root (containing the `deathgame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from deathgame import create_app, socketio
from deathgame.models import Player
from deathgame.services.games.session import GameSession


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    QUORUM = 5
    NEXT_ROUND_DELAY_SEC = 0
    ENFORCE_ROUND_TIME_LIMIT = False
    DISCONNECT_POLICY = 'forfeit'


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
    """Create Socket.IO test clients; all are disconnected on teardown."""
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass


@pytest.fixture()
def players():
    return {f'p{i}': Player(f'p{i}', f'Player {i}') for i in range(1, 6)}


@pytest.fixture()
def session(players):
    return GameSession('ROOM01', players)
