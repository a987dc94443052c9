import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Optional, Tuple

from planning_poker import protocol
from planning_poker.errors import InvalidVoteError, NotInRoomError, ValidationError
from planning_poker.models import DEFAULT_DECK, Player, Room, generate_room_code

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Owns every open room and applies intents to them.

    ``publisher`` delivers the resulting events. It needs two methods:
    ``broadcast(room_id, event, payload)`` to reach every member of a room
    and ``send(connection_id, event, payload)`` to reach one connection.
    Events are published while the room lock is held, so members observe
    them in the order the room was mutated.
    """

    def __init__(self, publisher, deck=DEFAULT_DECK, room_code_length: int = 6,
                 max_name_length: int = 32, reservation_ttl: float = 600,
                 clock=time.monotonic):
        self.publisher = publisher
        self.deck = tuple(deck)
        self.room_code_length = room_code_length
        self.max_name_length = max_name_length
        self.reservation_ttl = reservation_ttl
        self._clock = clock
        self._lock = threading.RLock()
        self._rooms: Dict[str, Room] = {}
        self._connections: Dict[str, Tuple[str, str]] = {}
        self._reserved: Dict[str, float] = {}

    # ---- Intents ----

    def validate_join(self, room_id, player_name) -> Tuple[str, str]:
        room_id = self._clean_text(room_id, 'Room ID')
        player_name = self._clean_text(player_name, 'Player name')
        if len(player_name) > self.max_name_length:
            raise ValidationError(f'Player name must be at most {self.max_name_length} characters')
        return room_id, player_name

    def join(self, connection_id: str, room_id, player_name) -> Player:
        room_id, player_name = self.validate_join(room_id, player_name)

        if self.membership(connection_id) is not None:
            # One room per connection: leaving first keeps the old room consistent
            self.disconnect(connection_id)

        with self._locked_room(room_id, create=True) as room:
            player = room.add_player(Player(player_name))
            with self._lock:
                self._connections[connection_id] = (room.id, player.id)
            logger.info(f"[join] room={room.id} player={player.id} name={player_name!r} size={len(room.players)}")
            self.publisher.broadcast(room.id, protocol.PLAYER_LIST_UPDATE, room.players_payload())
            if room.revealed:
                # Late joiner: bring its revealed flag in line with the room
                self.publisher.send(connection_id, protocol.VOTES_REVEALED, room.players_payload())
            return player

    def vote(self, connection_id: str, room_id, value) -> None:
        with self._locked_room(room_id) as room:
            player = self._member(room, room_id, connection_id)
            if room.revealed:
                raise InvalidVoteError('Votes have already been revealed for this round')
            player.vote = self._deck_value(value)
            logger.info(f"[vote] room={room.id} player={player.id}")
            self.publisher.broadcast(room.id, protocol.PLAYER_VOTED, protocol.player_voted_payload(player.id))

    def reveal(self, connection_id: str, room_id) -> None:
        with self._locked_room(room_id) as room:
            player = self._member(room, room_id, connection_id)
            repeat = room.revealed
            room.revealed = True
            logger.info(f"[reveal] room={room.id} by={player.id} repeat={repeat}")
            self.publisher.broadcast(room.id, protocol.VOTES_REVEALED, room.players_payload())

    def reset(self, connection_id: str, room_id) -> None:
        with self._locked_room(room_id) as room:
            player = self._member(room, room_id, connection_id)
            room.revealed = False
            room.clear_votes()
            logger.info(f"[reset] room={room.id} by={player.id}")
            self.publisher.broadcast(room.id, protocol.GAME_RESET, room.players_payload())

    def disconnect(self, connection_id: str) -> Optional[str]:
        """Drop the connection's player; returns the room id it was in, if any."""
        with self._lock:
            entry = self._connections.pop(connection_id, None)
        if entry is None:
            return None
        room_id, player_id = entry
        with self._locked_room(room_id) as room:
            if room is None:
                return room_id
            room.remove_player(player_id)
            logger.info(f"[leave] room={room_id} player={player_id} size={len(room.players)}")
            if room.is_empty():
                self._discard(room)
            else:
                self.publisher.broadcast(room.id, protocol.PLAYER_LIST_UPDATE, room.players_payload())
        return room_id

    # ---- Side channel and inspection ----

    def allocate_room_id(self) -> str:
        with self._lock:
            now = self._clock()
            for code, expires_at in list(self._reserved.items()):
                if expires_at <= now:
                    del self._reserved[code]
            taken = set(self._rooms) | set(self._reserved)
            code = generate_room_code(self.room_code_length, taken=taken)
            self._reserved[code] = now + self.reservation_ttl
        logger.info(f"[allocate] room={code}")
        return code

    def snapshot(self, room_id) -> Optional[dict]:
        """Masked view of a room, or None if it is not open."""
        if not isinstance(room_id, str) or not room_id.strip():
            return None
        with self._locked_room(room_id.strip()) as room:
            return room.to_dict() if room is not None else None

    def membership(self, connection_id: str) -> Optional[Tuple[str, str]]:
        with self._lock:
            return self._connections.get(connection_id)

    def has_room(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._rooms

    def __len__(self):
        with self._lock:
            return len(self._rooms)

    # ---- Helpers ----

    @contextmanager
    def _locked_room(self, room_id, create=False):
        """Yield the room with its lock held, or None if it does not exist.

        A room closed while we waited for its lock is looked up again, so an
        intent never mutates a room the registry has already dropped.
        """
        room_id = self._clean_text(room_id, 'Room ID')
        while True:
            with self._lock:
                room = self._rooms.get(room_id)
                if room is None and create:
                    room = Room(room_id)
                    self._rooms[room_id] = room
                    self._reserved.pop(room_id, None)
                    logger.info(f"[room-open] room={room_id}")
            if room is None:
                yield None
                return
            room.lock.acquire()
            if room.closed:
                room.lock.release()
                continue
            try:
                yield room
            finally:
                room.lock.release()
            return

    def _discard(self, room: Room) -> None:
        # Caller holds room.lock
        with self._lock:
            room.closed = True
            if self._rooms.get(room.id) is room:
                del self._rooms[room.id]
        logger.info(f"[room-close] room={room.id}")

    def _member(self, room: Optional[Room], room_id: str, connection_id: str) -> Player:
        if room is None:
            raise NotInRoomError(room_id)
        with self._lock:
            entry = self._connections.get(connection_id)
        if entry is None or entry[0] != room.id or entry[1] not in room.players:
            raise NotInRoomError(room.id)
        return room.players[entry[1]]

    def _deck_value(self, value):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidVoteError(f'Invalid vote: {value!r}')
        for card in self.deck:
            if card == value:
                return card
        raise InvalidVoteError(f'Invalid vote: {value!r} is not one of {list(self.deck)}')

    @staticmethod
    def _clean_text(value, label):
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f'{label} is required')
        return value.strip()
