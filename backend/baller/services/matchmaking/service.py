import logging
import random
import string
import threading
from typing import Any, Callable, Dict, Optional

from .queue import MatchQueue
from .registry import Connection, ConnectionRegistry, ConnectionState
from .relay import Deliver, EventRelay
from .rooms import Room, RoomTable

QUEUE_WAITING = 'queue:waiting'
QUEUE_LEFT = 'queue:left'
MATCH_FOUND = 'match:found'
OPPONENT_LEFT = 'match:opponent_left'

VerifyToken = Callable[[Any], Optional[str]]


def generate_guest_name(length: int = 4) -> str:
    """Generate a guest identity such as ``Guest_7QK2``."""
    return 'Guest_' + ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


class MatchmakingService:
    """Owns the live matchmaking state for one server process.

    The registry, queue and room table are only touched while holding
    ``self._lock``; socket handlers may run concurrently on threads or
    greenlets. Identity resolution can hit the account store, so it happens
    before the lock is taken and its result is dropped if the connection went
    away in the meantime.
    """

    def __init__(
        self,
        verify_token: VerifyToken,
        deliver: Deliver,
        logger: Optional[logging.Logger] = None,
        chat_max_length: int = 120,
        guest_suffix_length: int = 4,
    ) -> None:
        self._verify_token = verify_token
        self._deliver = deliver
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self.guest_suffix_length = guest_suffix_length
        self.registry = ConnectionRegistry()
        self.queue = MatchQueue()
        self.rooms = RoomTable(self.registry)
        self.relay = EventRelay(
            self.registry, self.rooms, deliver, self._logger, chat_max_length=chat_max_length
        )

    # ---- Connection lifecycle ----

    def connect(self, conn_id: str, namespace: Optional[str] = None) -> Connection:
        with self._lock:
            conn = self.registry.register(conn_id, namespace=namespace)
        self._logger.info(f"[connect] conn={conn_id}")
        return conn

    def resolve_identity(self, token: Any) -> str:
        username = self._verify_token(token) if token else None
        return username or generate_guest_name(self.guest_suffix_length)

    def authenticate(self, conn_id: str, token: Any) -> Optional[str]:
        identity = self.resolve_identity(token)
        with self._lock:
            conn = self.registry.get(conn_id)
            if not conn or not conn.live:
                return None
            self._identify(conn, identity)
        return identity

    def disconnect(self, conn_id: str) -> None:
        """Prune queue entry, release the room and drop the connection record."""
        with self._lock:
            conn = self.registry.get(conn_id)
            if not conn:
                return
            conn.live = False
            self.queue.remove(conn.id)
            room = self.rooms.get(conn.room_id)
            if room:
                peer = self.registry.get(room.peer_of(conn.id))
                if peer and peer.live:
                    self._deliver(peer, OPPONENT_LEFT, None)
                self.rooms.teardown(room.id)
                self._logger.info(f"[opponent-left] room={room.id} left={conn.username}")
            self.registry.discard(conn.id)
        self._logger.info(f"[disconnect] conn={conn_id}")

    # ---- Queue ----

    def join(self, conn_id: str, token: Any, team_data: Any = None) -> Optional[Room]:
        """Pair ``conn_id`` with the earliest live waiter, or enqueue it.

        Returns the new room when a pairing happened.
        """
        identity = self.resolve_identity(token)
        with self._lock:
            conn = self.registry.get(conn_id)
            if not conn or not conn.live:
                return None
            if conn.room_id:
                self._logger.info(f"[queue-ignored] conn={conn.id} room={conn.room_id}")
                return None
            self._identify(conn, identity)
            conn.team_data = team_data

            if conn.id in self.queue:
                self._deliver(conn, QUEUE_WAITING, {'position': self.queue.position(conn.id)})
                return None

            peer_id = self.queue.pop_peer(conn.id, self.registry.is_live)
            peer = self.registry.get(peer_id)
            if not peer:
                position = self.queue.append(conn.id)
                conn.state = ConnectionState.WAITING
                self._deliver(conn, QUEUE_WAITING, {'position': position})
                self._logger.info(f"[queue-wait] user={conn.username} position={position}")
                return None

            room = self.rooms.create(peer, conn)
            found = {
                'roomId': room.id,
                'home': {'username': peer.username, 'teamData': peer.team_data},
                'away': {'username': conn.username, 'teamData': conn.team_data},
            }
            self._deliver(peer, MATCH_FOUND, found)
            self._deliver(conn, MATCH_FOUND, found)
            self._logger.info(f"[match-found] room={room.id} home={peer.username} away={conn.username}")
            return room

    def leave(self, conn_id: str) -> bool:
        """Drop any queue entry for ``conn_id`` and acknowledge. Idempotent."""
        with self._lock:
            removed = self.queue.remove(conn_id)
            conn = self.registry.get(conn_id)
            if not conn:
                return removed
            if removed:
                conn.state = ConnectionState.IDENTIFIED
            self._deliver(conn, QUEUE_LEFT, None)
        return removed

    # ---- Relay ----

    def relay_event(self, conn_id: str, event: str, payload: Any = None) -> bool:
        with self._lock:
            return self.relay.relay(conn_id, event, payload)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'connections': len(self.registry),
                'queued': len(self.queue),
                'rooms': len(self.rooms),
            }

    def _identify(self, conn: Connection, identity: str) -> None:
        conn.username = identity
        if conn.state == ConnectionState.CONNECTED:
            conn.state = ConnectionState.IDENTIFIED
