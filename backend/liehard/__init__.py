from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from liehard.config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from liehard.routes import main
    flask_app.register_blueprint(main)

    from liehard.api.game import game
    # Operator actions and state reads live under /api/game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    # One live document per app; every write is pushed to display subscribers
    from liehard.store import STORE_EXTENSION_KEY, create_store
    from liehard.socketio_events import broadcast_state, register_socketio_handlers
    store = create_store(flask_app.config)
    store.subscribe(broadcast_state)
    flask_app.extensions[STORE_EXTENSION_KEY] = store

    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from liehard.services.games import importer, sequencer

    @click.command('game-reset')
    def game_reset_command():
        """Creates tables and writes a fresh lobby document."""
        with flask_app.app_context():
            db.create_all()
            sequencer.reset_to_lobby(
                store,
                sequencer.default_roster(flask_app.config),
                sequencer.default_round4(flask_app.config),
            )
            print(f"Live game '{store.document_id}' has been reset to the lobby!")

    @click.command('game-import')
    @click.argument('round1', type=click.File('r', encoding='utf-8-sig'))
    @click.argument('round2', type=click.File('r', encoding='utf-8-sig'))
    @click.argument('round3', type=click.File('r', encoding='utf-8-sig'))
    def game_import_command(round1, round2, round3):
        """Imports the Round 1, Round 2 and Round 3 CSV files into a fresh game."""
        with flask_app.app_context():
            db.create_all()
            document = importer.import_game(
                store,
                round1.read(),
                round2.read(),
                round3.read(),
                sequencer.default_roster(flask_app.config),
                sequencer.default_round4(flask_app.config),
            )
            print(
                f"Imported {len(document['round1']['statements'])} Round 1 statements, "
                f"{len(document['round2']['statements'])} Round 2 statements and "
                f"{len(document['round3']['sets'])} Round 3 sets."
            )

    flask_app.cli.add_command(game_reset_command)
    flask_app.cli.add_command(game_import_command)

    return flask_app
