import random
from typing import Any, Callable, Optional

from .challenges import ChallengeBroker
from .gateway import BroadcastGateway
from .matchmaking import MatchmakingQueue
from .registry import IdentityRegistry
from .sessions import SessionStore


class Lobby:
    """All live coordination state for one application instance.

    Each attribute owns exactly one registry; they only reach each other
    through method calls.
    """

    def __init__(self, emit: Callable[..., Any], stats, rng: Optional[random.Random] = None,
                 max_message_length: int = 0):
        rng = rng or random.Random()
        self.gateway = BroadcastGateway(emit)
        self.sessions = SessionStore(self.gateway, stats, max_message_length=max_message_length)
        self.queue = MatchmakingQueue(
            self.gateway, self.sessions, rng=rng,
            is_online=lambda username: self.registry.lookup(username) is not None,
        )
        self.registry = IdentityRegistry(self.gateway, self.queue)
        self.challenges = ChallengeBroker(self.gateway, self.registry, self.sessions, rng=rng)
