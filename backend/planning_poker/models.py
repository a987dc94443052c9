import math
import random
import string
import threading
import uuid

MASKED_VOTE = '?'
DEFAULT_DECK = (1, 2, 3, 5, 8, 13, 21)


def parse_deck(value):
    """Parse the configured estimate deck.

    Accepts a comma-separated string or any iterable of numbers. Integral
    values are kept as ints so they serialize as ``5`` rather than ``5.0``.
    """
    if value is None:
        return DEFAULT_DECK
    items = value.split(',') if isinstance(value, str) else list(value)
    deck = []
    for item in items:
        if isinstance(item, str):
            item = item.strip()
            if not item:
                continue
        number = float(item)
        if not math.isfinite(number) or number <= 0:
            raise ValueError(f'Estimates must be positive finite numbers, got {item!r}')
        number = int(number) if number.is_integer() else number
        if number not in deck:
            deck.append(number)
    if not deck:
        raise ValueError('The estimate deck is empty')
    return tuple(sorted(deck))


def generate_room_code(length=6, taken=()):
    """Generate a short, human-typeable room code not present in ``taken``."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code


class Player:
    def __init__(self, name, player_id=None):
        self.id = player_id or uuid.uuid4().hex
        self.name = name
        self.vote = None

    def to_dict(self, revealed=True):
        vote = self.vote
        if not revealed and vote is not None:
            vote = MASKED_VOTE
        return {
            'id': self.id,
            'name': self.name,
            'vote': vote,
        }


class Room:
    """Canonical state of one estimation room.

    ``players`` keeps join order. Mutations happen under ``lock``; once the
    registry drops an empty room it sets ``closed`` so that intents which
    were waiting on the lock know to look the room up again.
    """

    def __init__(self, room_id):
        self.id = room_id
        self.players = {}
        self.revealed = False
        self.closed = False
        self.lock = threading.Lock()

    def add_player(self, player):
        self.players[player.id] = player
        return player

    def remove_player(self, player_id):
        return self.players.pop(player_id, None)

    def is_empty(self):
        return not self.players

    def clear_votes(self):
        for player in self.players.values():
            player.vote = None

    def players_payload(self, revealed=None):
        if revealed is None:
            revealed = self.revealed
        return [p.to_dict(revealed=revealed) for p in self.players.values()]

    def to_dict(self):
        return {
            'roomId': self.id,
            'revealed': self.revealed,
            'players': self.players_payload(),
        }
