"""Room domain services: the in-memory registry of estimation rooms.

Socket handlers and HTTP routes import from here; nothing in this package
knows about Flask or Socket.IO beyond the publisher it is handed.
"""
from .registry import RoomRegistry

__all__ = ['RoomRegistry']
