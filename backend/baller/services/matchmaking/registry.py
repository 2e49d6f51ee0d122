from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ConnectionState(str, Enum):
    CONNECTED = 'connected'
    IDENTIFIED = 'identified'
    WAITING = 'waiting'
    IN_MATCH = 'in_match'
    CLOSED = 'closed'


@dataclass
class Connection:
    """A live duplex session as seen by the matchmaking core."""
    id: str
    namespace: Optional[str] = None
    username: Optional[str] = None
    team_data: Any = None
    room_id: Optional[str] = None
    live: bool = True
    state: ConnectionState = ConnectionState.CONNECTED


class ConnectionRegistry:
    """Live connections keyed by connection id."""

    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}

    def register(self, conn_id: str, namespace: Optional[str] = None) -> Connection:
        conn = Connection(id=conn_id, namespace=namespace)
        self._connections[conn_id] = conn
        return conn

    def get(self, conn_id: Optional[str]) -> Optional[Connection]:
        if conn_id is None:
            return None
        return self._connections.get(conn_id)

    def is_live(self, conn_id: str) -> bool:
        conn = self._connections.get(conn_id)
        return bool(conn and conn.live)

    def discard(self, conn_id: str) -> Optional[Connection]:
        conn = self._connections.pop(conn_id, None)
        if conn:
            conn.live = False
            conn.room_id = None
            conn.state = ConnectionState.CLOSED
        return conn

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._connections
