import os


def _csv(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Card deck players pick estimates from (comma-separated)
    ESTIMATE_DECK = os.environ.get('ESTIMATE_DECK', '1,2,3,5,8,13,21')
    # Length of room codes handed out by /create_room
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '32'))
    # Allocated-but-unjoined room ids are forgotten after this many seconds
    ROOM_RESERVATION_TTL_SEC = int(os.environ.get('ROOM_RESERVATION_TTL_SEC', '600'))
    CORS_ALLOWED_ORIGINS = _csv(os.environ.get(
        'CORS_ALLOWED_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000',
    ))
    # None lets Flask-SocketIO pick (eventlet > gevent > threading)
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE') or None
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    HOST = os.environ.get('HOST', '127.0.0.1')
    PORT = int(os.environ.get('PORT', '5000'))
