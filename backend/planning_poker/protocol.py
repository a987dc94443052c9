"""Socket.IO event names and payload helpers shared by both roles.

Client -> coordinator intents::

    join   {roomId, playerName}   ack: {roomId, playerId}
    vote   {roomId, vote}
    reveal {roomId}
    reset  {roomId}

Coordinator -> client events::

    player_list_update  [{id, name, vote}]   votes masked as "?" until reveal
    player_voted        {playerId}
    votes_revealed      [{id, name, vote}]   real values, implies revealed
    game_reset          [{id, name, vote: null}], implies not revealed
    error               {message}            only to the sender
"""
from typing import Any, Tuple

from planning_poker.errors import ValidationError

# Intents
JOIN = 'join'
VOTE = 'vote'
REVEAL = 'reveal'
RESET = 'reset'

# Broadcasts
PLAYER_LIST_UPDATE = 'player_list_update'
PLAYER_VOTED = 'player_voted'
VOTES_REVEALED = 'votes_revealed'
GAME_RESET = 'game_reset'
ERROR = 'error'

BROADCAST_EVENTS = (PLAYER_LIST_UPDATE, PLAYER_VOTED, VOTES_REVEALED, GAME_RESET, ERROR)


def _require_mapping(data: Any) -> dict:
    if not isinstance(data, dict):
        raise ValidationError('Payload must be an object')
    return data


def _require_text(data: dict, key: str, label: str) -> str:
    value = data.get(key)
    if value is None:
        value = ''
    if not isinstance(value, str):
        raise ValidationError(f'{label} must be a string')
    value = value.strip()
    if not value:
        raise ValidationError(f'{label} is required')
    return value


def parse_join(data: Any) -> Tuple[str, str]:
    data = _require_mapping(data)
    room_id = _require_text(data, 'roomId', 'Room ID')
    player_name = _require_text(data, 'playerName', 'Player name')
    return room_id, player_name


def parse_room_intent(data: Any) -> str:
    """Room id of a reveal/reset intent."""
    return _require_text(_require_mapping(data), 'roomId', 'Room ID')


def parse_vote(data: Any) -> Tuple[str, Any]:
    """Room id and raw vote value; the value is checked against the deck later."""
    data = _require_mapping(data)
    room_id = _require_text(data, 'roomId', 'Room ID')
    return room_id, data.get('vote')


def join_payload(room_id: str, player_name: str) -> dict:
    return {'roomId': room_id, 'playerName': player_name}


def vote_payload(room_id: str, vote) -> dict:
    return {'roomId': room_id, 'vote': vote}


def room_payload(room_id: str) -> dict:
    return {'roomId': room_id}


def player_voted_payload(player_id: str) -> dict:
    return {'playerId': player_id}
