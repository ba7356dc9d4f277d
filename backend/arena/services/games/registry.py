import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnlineEntry:
    username: str
    sid: str


class IdentityRegistry:
    """Authenticated connections, keyed by Socket.IO sid.

    One username may hold several sids (re-authentication from another tab);
    lookups resolve to the most recent registration.
    """

    def __init__(self, gateway, queue):
        self._gateway = gateway
        self._queue = queue
        self._entries: Dict[str, OnlineEntry] = {}
        self._lock = threading.RLock()

    def register(self, username: str, sid: str) -> None:
        with self._lock:
            # Re-insert so the entry moves to the end (most recent)
            previous = self._entries.pop(sid, None)
            self._entries[sid] = OnlineEntry(username=username, sid=sid)
        if previous is not None and previous.username != username and self.lookup(previous.username) is None:
            # The old name lost its last connection
            self._queue.cancel(previous.username)
            logger.info(f"[offline] user={previous.username} sid={sid} replaced by user={username}")
        logger.info(f"[online] user={username} sid={sid}")
        self._broadcast_online()

    def unregister(self, sid: str) -> Optional[OnlineEntry]:
        with self._lock:
            entry = self._entries.pop(sid, None)
        if entry is not None:
            self._queue.cancel(entry.username)
            logger.info(f"[offline] user={entry.username} sid={sid}")
        self._broadcast_online()
        return entry

    def lookup(self, username: str) -> Optional[str]:
        with self._lock:
            for entry in reversed(list(self._entries.values())):
                if entry.username == username:
                    return entry.sid
        return None

    def identity_for(self, sid: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(sid)
        return entry.username if entry else None

    def online_identities(self) -> List[str]:
        with self._lock:
            return sorted({entry.username for entry in self._entries.values()})

    def _broadcast_online(self) -> None:
        self._gateway.broadcast_all('onlineUsers', self.online_identities())
