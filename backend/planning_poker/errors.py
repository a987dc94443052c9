"""Exceptions raised by the room registry and the participant client.

Every coordinator-side error is reported back to the connection that sent
the offending intent as a single ``error`` event; none of them changes the
state of the room it concerns.
"""


class PokerError(Exception):
    """Base exception for planning poker errors."""

    def __init__(self, message):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {'message': self.message}


class ValidationError(PokerError):
    """Malformed payload, or an empty room id / player name."""


class NotInRoomError(PokerError):
    """Intent sent by a connection that is not a member of the room."""

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f'You are not a member of room {room_id}')


class InvalidVoteError(PokerError):
    """Vote outside the estimate deck, or cast after the reveal."""


class TransportError(PokerError):
    """The client channel is not connected."""
