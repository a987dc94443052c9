from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS') or '*'
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(
        flask_app,
        cors_allowed_origins=allowed_origins,
        async_mode=flask_app.config.get('SOCKETIO_ASYNC_MODE'),
    )

    from planning_poker.models import parse_deck
    from planning_poker.services.rooms import RoomRegistry
    from planning_poker.socketio_events import SocketIOPublisher, register_socketio_handlers

    # Rooms live only in this process; a fresh app starts with none
    flask_app.extensions['room_registry'] = RoomRegistry(
        SocketIOPublisher(socketio),
        deck=parse_deck(flask_app.config.get('ESTIMATE_DECK')),
        room_code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6)),
        max_name_length=int(flask_app.config.get('MAX_NAME_LENGTH', 32)),
        reservation_ttl=float(flask_app.config.get('ROOM_RESERVATION_TTL_SEC', 600)),
    )

    from planning_poker.main import main
    flask_app.register_blueprint(main)

    register_socketio_handlers()

    return flask_app
