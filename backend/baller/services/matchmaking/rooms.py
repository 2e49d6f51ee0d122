from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
import time
import uuid

from .registry import Connection, ConnectionRegistry, ConnectionState


@dataclass(frozen=True)
class Room:
    id: str
    home_id: str
    away_id: str
    created_at: float = field(default_factory=time.time)

    @property
    def members(self) -> Tuple[str, str]:
        return (self.home_id, self.away_id)

    def peer_of(self, conn_id: str) -> Optional[str]:
        if conn_id == self.home_id:
            return self.away_id
        if conn_id == self.away_id:
            return self.home_id
        return None


class RoomTable:
    """Active match rooms. Rooms are created whole and only ever deleted."""

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._rooms: Dict[str, Room] = {}

    def create(self, home: Connection, away: Connection) -> Room:
        room_id = str(uuid.uuid4())
        while room_id in self._rooms:
            room_id = str(uuid.uuid4())
        room = Room(id=room_id, home_id=home.id, away_id=away.id)
        self._rooms[room_id] = room
        for conn in (home, away):
            conn.room_id = room_id
            conn.state = ConnectionState.IN_MATCH
        return room

    def get(self, room_id: Optional[str]) -> Optional[Room]:
        if room_id is None:
            return None
        return self._rooms.get(room_id)

    def teardown(self, room_id: Optional[str]) -> Optional[Room]:
        """Delete the room and release its members. Unknown ids are a no-op."""
        room = self._rooms.pop(room_id, None) if room_id else None
        if not room:
            return None
        for member_id in room.members:
            conn = self._registry.get(member_id)
            if conn and conn.room_id == room.id:
                conn.room_id = None
                conn.state = ConnectionState.IDENTIFIED
        return room

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms
