from functools import wraps

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from planning_poker import protocol, socketio
from planning_poker.errors import PokerError


def room_channel(room_id: str) -> str:
    return f"room:{room_id}"


class SocketIOPublisher:
    """Delivers registry events through Flask-SocketIO rooms."""

    def __init__(self, sio):
        self.sio = sio

    def broadcast(self, room_id, event, payload):
        self.sio.emit(event, payload, to=room_channel(room_id))

    def send(self, connection_id, event, payload):
        self.sio.emit(event, payload, to=connection_id)


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _registry():
    return current_app.extensions['room_registry']


def reports_errors(handler):
    """Turn a rejected intent into a single ``error`` event for the sender."""

    @wraps(handler)
    def wrapper(*args, **kwargs):
        try:
            return handler(*args, **kwargs)
        except PokerError as exc:
            current_app.logger.info(f"[rejected] sid={_get_sid()} event={handler.__name__} error={exc.message!r}")
            emit(protocol.ERROR, exc.to_dict())
            return None

    return wrapper


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    room_id = _registry().disconnect(sid)
    current_app.logger.info(f"[disconnect] sid={sid} room={room_id} reason={reason}")


@reports_errors
def handle_join(data=None):
    registry = _registry()
    sid = _get_sid()
    room_id, player_name = registry.validate_join(*protocol.parse_join(data))

    previous = registry.membership(sid)
    if previous is not None:
        # Stop receiving the old room's broadcasts before it is told we left
        leave_room(room_channel(previous[0]))
        registry.disconnect(sid)

    join_room(room_channel(room_id))
    try:
        player = registry.join(sid, room_id, player_name)
    except PokerError:
        leave_room(room_channel(room_id))
        raise
    return {'roomId': room_id, 'playerId': player.id}


@reports_errors
def handle_vote(data=None):
    room_id, value = protocol.parse_vote(data)
    _registry().vote(_get_sid(), room_id, value)


@reports_errors
def handle_reveal(data=None):
    _registry().reveal(_get_sid(), protocol.parse_room_intent(data))


@reports_errors
def handle_reset(data=None):
    _registry().reset(_get_sid(), protocol.parse_room_intent(data))


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event(protocol.JOIN, handle_join, namespace=namespace)
    socketio.on_event(protocol.VOTE, handle_vote, namespace=namespace)
    socketio.on_event(protocol.REVEAL, handle_reveal, namespace=namespace)
    socketio.on_event(protocol.RESET, handle_reset, namespace=namespace)
