"""Matchmaking services: connection registry, waiting queue, rooms and relay.

Everything in this package is transport-agnostic. Socket handlers talk to a
single MatchmakingService which owns the registry, queue and room table and
serialises every mutation behind one lock.
"""

from .registry import Connection, ConnectionRegistry, ConnectionState
from .queue import MatchQueue
from .rooms import Room, RoomTable
from .relay import EventRelay, RELAYED_EVENTS
from .service import MatchmakingService

__all__ = [
    'Connection',
    'ConnectionRegistry',
    'ConnectionState',
    'MatchQueue',
    'Room',
    'RoomTable',
    'EventRelay',
    'RELAYED_EVENTS',
    'MatchmakingService',
]
