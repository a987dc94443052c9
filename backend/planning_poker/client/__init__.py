"""Participant side of the planning poker protocol.

``ParticipantClient`` keeps the broadcast-derived projection of one room;
``SocketIOChannel`` connects it to a coordinator.
"""
from .channel import SocketIOChannel
from .session import ParticipantClient, compute_average

__all__ = ['ParticipantClient', 'SocketIOChannel', 'compute_average']
