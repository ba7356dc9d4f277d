import logging
import random
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Set

from .sessions import Seat

logger = logging.getLogger(__name__)


@dataclass
class PendingSeat:
    sid: Optional[str]
    symbol: Optional[str] = None


@dataclass
class PendingMatch:
    """Two queued players who still have to pick their symbols."""

    id: str
    players: Dict[str, PendingSeat]
    symbols_chosen: int = 0
    claimed: Set[str] = field(default_factory=set)


class MatchmakingQueue:
    """FIFO pairing of anonymous players, followed by a symbol handshake.

    Pairing is oldest-waiting-first. A pending match becomes a game session
    once both players have claimed distinct symbols.
    """

    def __init__(self, gateway, sessions, rng: Optional[random.Random] = None,
                 is_online: Optional[Callable[[str], bool]] = None):
        self._gateway = gateway
        self._sessions = sessions
        self._rng = rng or random.Random()
        self._is_online = is_online or (lambda username: True)
        self._waiting: 'OrderedDict[str, Optional[str]]' = OrderedDict()
        self._pending: Dict[str, PendingMatch] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._waiting)

    def is_queued(self, username: str) -> bool:
        return username in self._waiting

    def pending(self, match_id: str) -> Optional[PendingMatch]:
        return self._pending.get(match_id)

    def enqueue(self, username: str, sid: Optional[str]) -> Optional[PendingMatch]:
        with self._lock:
            if username in self._waiting:
                return None
            self._waiting[username] = sid
            logger.info(f"[queue-join] user={username} waiting={len(self._waiting)}")
            return self._try_pair(username)

    def _try_pair(self, username: str) -> Optional[PendingMatch]:
        opponent = None
        for name in list(self._waiting):
            if name == username:
                continue
            if not self._is_online(name):
                del self._waiting[name]
                logger.info(f"[queue-drop] user={name} offline")
                continue
            opponent = name
            break
        if opponent is None:
            return None
        sid = self._waiting.pop(username)
        opponent_sid = self._waiting.pop(opponent)
        match = PendingMatch(
            id=f"match_{uuid.uuid4().hex}",
            players={username: PendingSeat(sid), opponent: PendingSeat(opponent_sid)},
        )
        self._pending[match.id] = match
        self._gateway.send(sid, 'matchFound', {'match_id': match.id, 'opponent': opponent})
        self._gateway.send(opponent_sid, 'matchFound', {'match_id': match.id, 'opponent': username})
        logger.info(f"[match-found] match={match.id} players={username},{opponent}")
        return match

    def cancel(self, username: str) -> bool:
        with self._lock:
            if username not in self._waiting:
                return False
            del self._waiting[username]
        logger.info(f"[queue-leave] user={username}")
        return True

    def choose_symbol(self, match_id: str, username: str, symbol) -> None:
        if not isinstance(symbol, str) or not symbol:
            return
        with self._lock:
            match = self._pending.get(match_id)
            if match is None or username not in match.players:
                logger.debug(f"[symbol-ignored] match={match_id} user={username}")
                return
            seat = match.players[username]
            if seat.symbol is not None:
                return
            if symbol in match.claimed:
                self._gateway.send(seat.sid, 'symbolTaken', {'symbol': symbol})
                return

            seat.symbol = symbol
            match.claimed.add(symbol)
            match.symbols_chosen += 1
            self._gateway.send(seat.sid, 'symbolAccepted', {'symbol': symbol})

            if match.symbols_chosen < len(match.players):
                return
            del self._pending[match_id]

        first = self._rng.choice(list(match.players))
        self._sessions.create(
            match.id,
            {name: Seat(symbol=s.symbol, sid=s.sid) for name, s in match.players.items()},
            first,
        )
