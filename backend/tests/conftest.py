import os
import sys
import pytest

# Ensure the backend root (containing the `bingo` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bingo import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MIN_PLAYERS = 2
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import bingo.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


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


@pytest.fixture()
def make_room(flask_app):
    """Create a waiting room with seated players; returns the Room."""
    from bingo.models import Room, Player

    def _make(code='ROOM1', players=2, cards_per_player=1, free_center=True, rounds_total=3, max_players=8):
        room = Room(
            room_code=code,
            rounds_total=rounds_total,
            cards_per_player=cards_per_player,
            free_center=free_center,
            max_players=max_players,
        )
        db.session.add(room)
        db.session.flush()
        for idx in range(players):
            db.session.add(Player(room_id=room.id, name=f'Player {idx + 1}', role='host' if idx == 0 else 'player'))
        db.session.commit()
        return room

    return _make
