import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from planning_poker import protocol
from planning_poker.errors import TransportError
from planning_poker.models import MASKED_VOTE

logger = logging.getLogger(__name__)

JOIN_FIELDS_REQUIRED = 'Please enter a room ID and your name.'
CREATE_NAME_REQUIRED = 'Please enter your name before creating a room.'

# Phases of the participant state machine
DISCONNECTED = 'disconnected'
CONNECTED = 'connected'
JOINING = 'joining'
HIDDEN = 'hidden'
REVEALED = 'revealed'


def compute_average(players) -> str:
    """Mean of the numeric votes, rounded to one decimal.

    The float mean is rounded half-up on its exact binary value, which is
    how JavaScript's ``toFixed(1)`` behaves: 23/20 is stored as 1.1499...
    and gives ``'1.1'``. Masked and absent votes are skipped. Returns
    ``'0'`` when nobody has a numeric vote.
    """
    votes = [p.get('vote') for p in players]
    votes = [v for v in votes if isinstance(v, (int, float)) and not isinstance(v, bool)]
    if not votes:
        return '0'
    mean = Decimal(sum(votes) / len(votes))
    return str(mean.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


class ParticipantClient:
    """Local projection of one room, driven by coordinator broadcasts.

    ``players`` and ``revealed`` are always overwritten by the latest
    broadcast, never merged. ``self_selected_vote`` is the optimistic echo
    of our own card and only a reset (or losing the connection) clears it.

    ``channel`` must provide ``bind(participant)``, ``connect()``,
    ``emit(event, payload, callback=None)`` and ``create_room()``; see
    :class:`planning_poker.client.channel.SocketIOChannel`.
    """

    def __init__(self, channel):
        self.channel = channel
        self.connected = False
        self.joined_room_id: Optional[str] = None
        self.self_name = ''
        self.self_id: Optional[str] = None
        self.players: List[dict] = []
        self.revealed = False
        self.self_selected_vote = None
        self.error = ''
        channel.bind(self)

    # ---- Transport lifecycle ----

    def connect(self, **kwargs):
        self.channel.connect(**kwargs)

    def on_connect(self):
        logger.info('Connected to backend.')
        self.connected = True

    def on_disconnect(self, *args):
        # The coordinator forgets us on disconnect, so the projection goes too
        logger.info('Disconnected from backend.')
        self.connected = False
        self.joined_room_id = None
        self.self_id = None
        self.players = []
        self.revealed = False
        self.self_selected_vote = None

    # ---- Intents ----

    def request_join(self, room_id, player_name) -> bool:
        room_id = (room_id or '').strip()
        player_name = (player_name or '').strip()
        if not room_id or not player_name:
            self.error = JOIN_FIELDS_REQUIRED
            return False
        self.joined_room_id = room_id
        self.self_name = player_name
        self.self_id = None
        self.players = []
        self.revealed = False
        self.self_selected_vote = None
        self.error = ''
        if not self._send(protocol.JOIN, protocol.join_payload(room_id, player_name),
                          callback=self._on_join_ack):
            # Nothing reached the coordinator, so we are in no room
            self.joined_room_id = None
            return False
        return True

    def request_create_room(self, player_name) -> bool:
        if not (player_name or '').strip():
            self.error = CREATE_NAME_REQUIRED
            return False
        try:
            room_id = self.channel.create_room()
        except TransportError as exc:
            logger.warning(f"Failed to create room: {exc.message}")
            self.error = f'Failed to connect to the backend: {exc.message}'
            return False
        logger.info(f"Joining newly created room {room_id}")
        return self.request_join(room_id, player_name)

    def cast_vote(self, value) -> bool:
        if not (self.connected and self.joined_room_id and not self.revealed):
            return False
        self.self_selected_vote = value
        return self._send(protocol.VOTE, protocol.vote_payload(self.joined_room_id, value))

    def request_reveal(self) -> bool:
        if not self.joined_room_id:
            return False
        return self._send(protocol.REVEAL, protocol.room_payload(self.joined_room_id))

    def request_reset(self) -> bool:
        if not self.joined_room_id:
            return False
        return self._send(protocol.RESET, protocol.room_payload(self.joined_room_id))

    # ---- Broadcasts ----

    def apply_broadcast(self, event, payload=None):
        if event == protocol.ERROR:
            self.error = payload.get('message', '') if isinstance(payload, dict) else ''
            return
        if event == protocol.PLAYER_VOTED:
            player_id = payload.get('playerId') if isinstance(payload, dict) else None
            self.players = [
                dict(p, vote=MASKED_VOTE) if p.get('id') == player_id else p
                for p in self.players
            ]
            return
        if event not in (protocol.PLAYER_LIST_UPDATE, protocol.VOTES_REVEALED, protocol.GAME_RESET):
            logger.debug(f"Ignoring unknown event {event!r}")
            return
        if not isinstance(payload, list):
            logger.warning(f"Ignoring {event} with non-list payload")
            return

        self.players = [dict(p) for p in payload]
        if event == protocol.VOTES_REVEALED:
            self.revealed = True
        elif event == protocol.GAME_RESET:
            self.revealed = False
            self.self_selected_vote = None

    # ---- Derived state ----

    def compute_average(self) -> str:
        return compute_average(self.players)

    def is_member(self) -> bool:
        return self.self_id is not None and any(p.get('id') == self.self_id for p in self.players)

    @property
    def phase(self) -> str:
        if not self.connected:
            return DISCONNECTED
        if not self.joined_room_id:
            return CONNECTED
        if not self.is_member():
            return JOINING
        return REVEALED if self.revealed else HIDDEN

    # ---- Helpers ----

    def _on_join_ack(self, ack=None):
        if isinstance(ack, dict) and ack.get('roomId') == self.joined_room_id:
            self.self_id = ack.get('playerId')

    def _send(self, event, payload, callback=None) -> bool:
        try:
            self.channel.emit(event, payload, callback=callback)
        except TransportError as exc:
            logger.warning(f"Could not send {event}: {exc.message}")
            self.error = exc.message
            return False
        return True
