from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from bingo.main import main
    flask_app.register_blueprint(main)

    from bingo.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api')

    # Register Socket.IO event handlers
    from bingo.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo room."""
        from bingo.models import Room, Player
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            room = Room(room_code='DEMO1', rounds_total=3, cards_per_player=2)
            db.session.add(room)
            db.session.flush()
            db.session.add(Player(room_id=room.id, name='Host', role='host'))
            db.session.add(Player(room_id=room.id, name='Guest'))

            db.session.commit()
            print(f'Database has been reset and seeded with room {room.room_code}!')

    @click.command('tick-rounds')
    def tick_rounds_command():
        """Runs one draw tick for every active round (cron-style poller)."""
        from bingo.services.games.scheduler import tick_active_rounds
        with flask_app.app_context():
            for result in tick_active_rounds():
                print(f'round={result.round_id} action={result.action} draw_index={result.draw_index}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(tick_rounds_command)

    return flask_app
