from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException
import click
from config import Config

db = SQLAlchemy()
# Used only for its background-task and sleep helpers; clients poll over HTTP
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    CORS(flask_app, origins=flask_app.config.get('CORS_ORIGINS') or '*')
    socketio.init_app(flask_app)

    from opquiz.main import main
    flask_app.register_blueprint(main, url_prefix='/api')

    from opquiz.api.room import room
    flask_app.register_blueprint(room, url_prefix='/api/room')

    from opquiz.services.openings import build_opening_source
    from opquiz.services.room.controller import RoomController
    from opquiz.services.room.reaper import IdleReaper
    from opquiz.services.room.state import RoomState
    from opquiz.services.room.storage import build_player_repository

    if flask_app.config.get('PLAYER_STORE') == 'sql':
        import opquiz.models  # noqa: F401
        with flask_app.app_context():
            db.create_all()

    controller = RoomController(
        RoomState(),
        build_player_repository(flask_app.config),
        build_opening_source(flask_app.config),
        password=flask_app.config.get('ROOM_PASSWORD'),
    )
    reaper = IdleReaper(
        flask_app,
        controller,
        idle_seconds=float(flask_app.config.get('ROOM_IDLE_MINUTES', 20)) * 60,
        tick_seconds=int(flask_app.config.get('REAPER_TICK_SEC', 60)),
    )
    flask_app.extensions['quiz_room'] = controller
    flask_app.extensions['quiz_reaper'] = reaper
    if not flask_app.config.get('TESTING'):
        reaper.start()

    @flask_app.errorhandler(Exception)
    def handle_unexpected(exc):
        if isinstance(exc, HTTPException):
            return jsonify({'error': exc.description or exc.name}), exc.code
        flask_app.logger.exception(f"[error] unhandled: {exc}")
        return jsonify({'error': 'Unexpected server error'}), 500

    @click.command('room-reset')
    def room_reset_command():
        """Removes every player and marks every opening as unheard."""
        with flask_app.app_context():
            controller.wipe()
        print('Room has been reset!')

    flask_app.cli.add_command(room_reset_command)

    return flask_app
