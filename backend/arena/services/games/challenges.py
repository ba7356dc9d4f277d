import logging
import random
import threading
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

from .sessions import Seat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Challenge:
    id: str
    challenger: str
    challenged: str
    challenger_symbol: str


class ChallengeBroker:
    """Direct invitations between two online players."""

    def __init__(self, gateway, registry, sessions, rng: Optional[random.Random] = None):
        self._gateway = gateway
        self._registry = registry
        self._sessions = sessions
        self._rng = rng or random.Random()
        self._challenges: Dict[str, Challenge] = {}
        self._lock = threading.RLock()

    def get(self, challenge_id: str) -> Optional[Challenge]:
        return self._challenges.get(challenge_id)

    def send_challenge(self, challenger: str, target: str, symbol) -> Optional[Challenge]:
        if not isinstance(symbol, str) or not symbol or target == challenger:
            return None
        target_sid = self._registry.lookup(target)
        if target_sid is None:
            return None
        challenge = Challenge(
            id=f"challenge_{uuid.uuid4().hex}",
            challenger=challenger,
            challenged=target,
            challenger_symbol=symbol,
        )
        with self._lock:
            self._challenges[challenge.id] = challenge
        self._gateway.send(target_sid, 'challengeReceived', {
            'challenge_id': challenge.id,
            'challenger': challenger,
            'symbol': symbol,
        })
        logger.info(f"[challenge] id={challenge.id} from={challenger} to={target}")
        return challenge

    def respond(self, challenge_id: str, responder: str, responder_sid: Optional[str], accepted: bool, symbol=None):
        """Honor exactly one response per challenge.

        Returns the created session on a successful accept, else None.
        """
        with self._lock:
            challenge = self._challenges.get(challenge_id)
            if challenge is None or challenge.challenged != responder:
                return None
            if accepted and (not isinstance(symbol, str) or not symbol):
                return None
            if accepted and symbol == challenge.challenger_symbol:
                # The challenge stays open so the responder can pick again
                self._gateway.send(responder_sid, 'symbolTaken', {'symbol': symbol})
                return None
            del self._challenges[challenge_id]

        challenger_sid = self._registry.lookup(challenge.challenger)
        if not accepted:
            self._gateway.send(challenger_sid, 'challengeDeclined', {'username': responder})
            logger.info(f"[challenge-declined] id={challenge_id}")
            return None
        if challenger_sid is None:
            logger.info(f"[challenge-dropped] id={challenge_id} challenger offline")
            return None

        first = self._rng.choice([challenge.challenger, challenge.challenged])
        return self._sessions.create(
            f"game_{uuid.uuid4().hex}",
            {
                challenge.challenger: Seat(symbol=challenge.challenger_symbol, sid=challenger_sid),
                challenge.challenged: Seat(symbol=symbol, sid=responder_sid),
            },
            first,
        )
