import os
import sys
import pytest

# Ensure the backend root (containing the `cinequiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from cinequiz import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    QUESTION_BATCH_SIZE = 10
    POINTS_PER_CORRECT_ANSWER = 10
    QUICK_MATCH_MAX_PLAYERS = 4
    QUESTION_TIMER_ENABLED = False
    # Keep bcrypt fast in tests
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import cinequiz.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def seeded(flask_app):
    """Starter question bank plus three players: alice (usual host), bob and carol."""
    from cinequiz.models import User
    from cinequiz.seed import seed_database
    seed_database()
    for name in ('alice', 'bob', 'carol'):
        db.session.add(User(id=name, display_name=name.title()))
    db.session.commit()
    return flask_app


@pytest.fixture()
def make_room(seeded):
    from cinequiz.models import MultiplayerRoom

    def _make(host_id='alice', **kwargs):
        kwargs.setdefault('name', 'Movie night')
        room = MultiplayerRoom(host_id=host_id, current_players=0, **kwargs)
        db.session.add(room)
        db.session.commit()
        return room.id

    return _make


@pytest.fixture()
def sio_factory(flask_app):
    created = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        test_client.get_received('/ws')  # drop the 'connected' greeting
        created.append(test_client)
        return test_client

    yield _connect
    for test_client in created:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def sio_client(sio_factory):
    return sio_factory()
