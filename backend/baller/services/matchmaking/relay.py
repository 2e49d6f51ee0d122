from logging import Logger
from typing import Any, Callable, Optional

from .registry import Connection, ConnectionRegistry
from .rooms import RoomTable

MATCH_STATE = 'match:state'
MATCH_GOAL = 'match:goal'
MATCH_CHAT = 'match:chat'
MATCH_END = 'match:end'

RELAYED_EVENTS = (MATCH_STATE, MATCH_GOAL, MATCH_CHAT, MATCH_END)

Deliver = Callable[[Connection, str, Any], None]


def shape_chat(sender: Optional[str], payload: Any, max_length: int) -> dict:
    """Tag a chat payload with its sender and cap the message length."""
    message = payload.get('message') if isinstance(payload, dict) else None
    if message is None:
        message = ''
    elif not isinstance(message, str):
        message = str(message)
    return {'from': sender, 'message': message[:max_length]}


class EventRelay:
    """Forward gameplay events from one room member to the other."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        rooms: RoomTable,
        deliver: Deliver,
        logger: Logger,
        chat_max_length: int = 120,
    ) -> None:
        self._registry = registry
        self._rooms = rooms
        self._deliver = deliver
        self._logger = logger
        self.chat_max_length = chat_max_length

    def relay(self, conn_id: str, event: str, payload: Any = None) -> bool:
        """Relay ``event`` from ``conn_id`` to its opponent.

        Returns True when the payload was delivered. Events from connections
        without a current room are dropped without error.
        """
        if event not in RELAYED_EVENTS:
            raise ValueError(f'not a relayed event: {event}')
        source = self._registry.get(conn_id)
        if not source or not source.room_id:
            return False
        room = self._rooms.get(source.room_id)
        if not room:
            # Room already gone; forget the dangling reference
            source.room_id = None
            return False
        peer = self._registry.get(room.peer_of(source.id))
        if not peer or not peer.live:
            self._logger.info(f"[relay-stale] room={room.id} from={source.id} event={event}")
            self._rooms.teardown(room.id)
            return False

        if event == MATCH_CHAT:
            payload = shape_chat(source.username, payload, self.chat_max_length)
        self._deliver(peer, event, payload)

        if event == MATCH_END:
            self._rooms.teardown(room.id)
            self._logger.info(f"[match-end] room={room.id} by={source.username}")
        return True
