import logging
from typing import Any, Callable, Iterable, Optional

logger = logging.getLogger(__name__)


class BroadcastGateway:
    """Deliver events to Socket.IO connections.

    ``emit`` is ``socketio.emit`` bound to the game namespace (or any callable
    with the same ``emit(event, payload, to=None)`` shape). Addressing an sid
    that has already disconnected is a no-op on the Socket.IO side, so stale
    handles held by sessions and matches are tolerated without cleanup.
    """

    def __init__(self, emit: Callable[..., Any]):
        self._emit = emit

    def send(self, handle: Optional[str], event: str, payload: Any = None) -> None:
        if handle is None:
            logger.debug(f"[drop] event={event} no handle")
            return
        self._emit(event, payload, to=handle)

    def broadcast(self, handles: Iterable[Optional[str]], event: str, payload: Any = None) -> None:
        for handle in handles:
            self.send(handle, event, payload)

    def broadcast_all(self, event: str, payload: Any = None) -> None:
        self._emit(event, payload)
