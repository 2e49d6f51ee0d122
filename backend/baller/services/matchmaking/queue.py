from typing import Callable, List, Optional


class MatchQueue:
    """Ordered waiting list of connection ids (arrival order, no duplicates)."""

    def __init__(self) -> None:
        self._waiting: List[str] = []

    def __len__(self) -> int:
        return len(self._waiting)

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._waiting

    def ids(self) -> List[str]:
        return list(self._waiting)

    def position(self, conn_id: str) -> Optional[int]:
        """1-indexed position of ``conn_id`` or None when not queued."""
        try:
            return self._waiting.index(conn_id) + 1
        except ValueError:
            return None

    def append(self, conn_id: str) -> int:
        if conn_id not in self._waiting:
            self._waiting.append(conn_id)
        return self._waiting.index(conn_id) + 1

    def remove(self, conn_id: str) -> bool:
        if conn_id in self._waiting:
            self._waiting.remove(conn_id)
            return True
        return False

    def pop_peer(self, conn_id: str, is_live: Callable[[str], bool]) -> Optional[str]:
        """Remove and return the earliest waiter eligible to pair with ``conn_id``.

        Waiters that are no longer live are pruned on the way. The caller's own
        entry is skipped, never returned.
        """
        for waiting_id in list(self._waiting):
            if waiting_id == conn_id:
                continue
            self._waiting.remove(waiting_id)
            if is_live(waiting_id):
                return waiting_id
        return None
