import logging
from functools import partial

import httpx
import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from planning_poker import protocol
from planning_poker.errors import TransportError

logger = logging.getLogger(__name__)


class SocketIOChannel:
    """Socket.IO event channel plus the HTTP room-allocation side channel.

    Reconnection and backoff are left to the python-socketio client.
    """

    def __init__(self, url: str, sio=None, http=None, timeout: float = 10.0):
        self.url = url.rstrip('/')
        self.sio = sio or socketio.Client()
        self.http = http or httpx.Client(base_url=self.url, timeout=timeout)

    def bind(self, participant) -> None:
        self.sio.on('connect', participant.on_connect)
        self.sio.on('disconnect', participant.on_disconnect)
        for event in protocol.BROADCAST_EVENTS:
            self.sio.on(event, partial(participant.apply_broadcast, event))

    def connect(self, **kwargs) -> None:
        logger.info(f"Connecting to {self.url}")
        try:
            self.sio.connect(self.url, **kwargs)
        except SocketIOConnectionError as exc:
            raise TransportError(f'Could not connect to {self.url}: {exc}') from exc

    def emit(self, event, payload, callback=None) -> None:
        if not self.sio.connected:
            raise TransportError('Not connected to the server')
        self.sio.emit(event, payload, callback=callback)

    def create_room(self) -> str:
        try:
            response = self.http.post('/create_room')
            response.raise_for_status()
            return response.json()['roomId']
        except httpx.HTTPError as exc:
            raise TransportError(str(exc)) from exc
        except (KeyError, ValueError) as exc:
            raise TransportError(f'Unexpected response from /create_room: {exc}') from exc

    def close(self) -> None:
        if self.sio.connected:
            self.sio.disconnect()
        self.http.close()
