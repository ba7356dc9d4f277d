import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from arena.errors import PersistenceError
from .board import BOARD_SIZE, empty_board, find_winner, is_full

logger = logging.getLogger(__name__)

PLAYING = 'playing'
FINISHED = 'finished'
DRAW = 'draw'


@dataclass
class Seat:
    symbol: str
    sid: Optional[str]


@dataclass
class GameSession:
    id: str
    players: Dict[str, Seat]
    current_player: str
    board: List[Optional[str]] = field(default_factory=empty_board)
    state: str = PLAYING
    last_winner: Optional[str] = None
    rematch_votes: Set[str] = field(default_factory=set)

    def other(self, username: str) -> Optional[str]:
        for name in self.players:
            if name != username:
                return name
        return None

    def symbols(self) -> Dict[str, str]:
        return {name: seat.symbol for name, seat in self.players.items()}

    def sids(self) -> List[Optional[str]]:
        return [seat.sid for seat in self.players.values()]

    def restart(self) -> None:
        """Reset in place for a rematch; the previous loser opens."""
        names = list(self.players)
        if self.last_winner in self.players:
            self.current_player = self.other(self.last_winner)
        else:
            self.current_player = names[0]
        self.board = empty_board()
        self.state = PLAYING
        self.rematch_votes.clear()

    def snapshot(self) -> Dict:
        return {
            'session_id': self.id,
            'players': {name: {'symbol': seat.symbol} for name, seat in self.players.items()},
            'current_player': self.current_player,
            'board': list(self.board),
        }


def _valid_position(position) -> bool:
    return isinstance(position, int) and not isinstance(position, bool) and 0 <= position < BOARD_SIZE


class SessionStore:
    """Authoritative set of live games.

    Requests that do not fit the current state (wrong turn, occupied cell,
    unknown session, non-participant) are dropped without a reply so late or
    duplicated client messages are harmless.
    """

    def __init__(self, gateway, stats, max_message_length: int = 0):
        self._gateway = gateway
        self._stats = stats
        self._max_message_length = max_message_length
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Optional[GameSession]:
        return self._sessions.get(session_id)

    def create(self, session_id: str, players: Dict[str, Seat], first_player: str) -> GameSession:
        session = GameSession(id=session_id, players=dict(players), current_player=first_player)
        with self._lock:
            self._sessions[session_id] = session
            self._gateway.broadcast(session.sids(), 'gameStart', session.snapshot())
        logger.info(f"[game-start] session={session_id} players={list(players)} first={first_player}")
        return session

    def apply_move(self, session_id: str, username: str, position) -> Optional[Dict]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.state != PLAYING or session.current_player != username:
                logger.debug(f"[move-ignored] session={session_id} user={username}")
                return None
            if not _valid_position(position) or session.board[position] is not None:
                logger.debug(f"[move-ignored] session={session_id} user={username} position={position!r}")
                return None

            session.board[position] = session.players[username].symbol
            winner = find_winner(session.board, session.symbols())
            is_draw = winner is None and is_full(session.board)
            if winner is not None:
                session.state = FINISHED
                session.last_winner = winner
            elif is_draw:
                session.state = DRAW
                session.last_winner = None
            else:
                session.current_player = session.other(username)

            update = {
                'session_id': session.id,
                'board': list(session.board),
                'current_player': session.current_player,
                'state': session.state,
                'winner': winner,
                'is_draw': is_draw,
            }
            self._gateway.broadcast(session.sids(), 'gameUpdate', update)
            origin = session.players[username].sid
            if winner is not None:
                results = [(winner, 'win'), (session.other(winner), 'loss')]
            elif is_draw:
                results = [(name, 'draw') for name in session.players]
            else:
                results = []

        if results:
            logger.info(f"[game-over] session={session_id} state={update['state']} winner={winner}")
            self._record_results(session_id, results, origin)
        return update

    def _record_results(self, session_id: str, results, origin: Optional[str]) -> None:
        # Best effort: the finished board stays finished even if the write fails
        failed = False
        for username, kind in results:
            try:
                self._stats.increment_stat(username, kind)
            except PersistenceError as exc:
                failed = True
                logger.warning(f"[stats-failed] session={session_id} user={username} kind={kind} error={exc}")
        if failed:
            self._gateway.send(origin, 'error', {'message': 'Failed to record game result'})

    def send_message(self, session_id: str, username: str, text) -> bool:
        if not isinstance(text, str) or not text:
            return False
        if self._max_message_length:
            text = text[:self._max_message_length]
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or username not in session.players:
                return False
            self._gateway.broadcast(session.sids(), 'messageReceived', {
                'username': username,
                'message': text,
                'timestamp': int(time.time() * 1000),
            })
        return True

    def request_rematch(self, session_id: str, username: str) -> bool:
        """Record ``username``'s consent; returns True if the game restarted."""
        return self._consent(session_id, username)

    def respond_to_rematch(self, session_id: str, username: str, accepted: bool) -> bool:
        if accepted:
            return self._consent(session_id, username)
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or username not in session.players:
                return False
            session.rematch_votes.clear()
            opponent = session.other(username)
            self._gateway.send(session.players[opponent].sid, 'rematchDeclined', {'username': username})
        logger.info(f"[rematch-declined] session={session_id} by={username}")
        return False

    def _consent(self, session_id: str, username: str) -> bool:
        # A bare request counts as consent, same as an accepting reply
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or username not in session.players:
                return False
            session.rematch_votes.add(username)
            if session.rematch_votes >= set(session.players):
                session.restart()
                self._gateway.broadcast(session.sids(), 'gameStart', session.snapshot())
                logger.info(f"[rematch] session={session_id} first={session.current_player}")
                return True
            opponent = session.other(username)
            self._gateway.send(session.players[opponent].sid, 'rematchRequested', {'username': username})
        return False

    def leave(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info(f"[game-closed] session={session_id}")
        return session
