from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from cinequiz.main import main
    flask_app.register_blueprint(main)

    from cinequiz.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # One coordinator per app; tests get a fresh registry with every app
    flask_app.extensions['room_coordinator'] = build_coordinator(flask_app)

    from cinequiz.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from cinequiz.seed import seed_database
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            users, questions = seed_database()
            print(f'Database has been reset and seeded! ({users} users, {questions} questions)')

    flask_app.cli.add_command(db_reset_command)

    return flask_app


def build_coordinator(flask_app):
    from cinequiz.realtime import ConnectionRegistry, RoomBroadcaster, RoomCoordinator
    from cinequiz.realtime.timers import QuestionTimers
    from cinequiz.services.rooms.store import SqlRoomStore
    from cinequiz.services.rooms.questions import SqlQuestionBank

    cfg = flask_app.config
    timers_enabled = bool(cfg.get('QUESTION_TIMER_ENABLED')) and (
        not cfg.get('TESTING') or bool(cfg.get('ENABLE_SCHEDULER_IN_TESTS'))
    )
    registry = ConnectionRegistry()
    question_bank = SqlQuestionBank()
    return RoomCoordinator(
        registry=registry,
        broadcaster=RoomBroadcaster(registry),
        store=SqlRoomStore(),
        question_bank=question_bank,
        answer_checker=question_bank,
        password_checker=bcrypt.check_password_hash,
        timers=QuestionTimers(socketio, app=flask_app, enabled=timers_enabled),
        batch_size=int(cfg.get('QUESTION_BATCH_SIZE', 10)),
        points_per_correct=int(cfg.get('POINTS_PER_CORRECT_ANSWER', 10)),
        logger=flask_app.logger,
    )
