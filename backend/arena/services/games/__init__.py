"""Game domain services: online registry, challenges, matchmaking, sessions.

This package holds the in-memory coordination state. It is driven by the
Socket.IO handlers and talks back to clients only through the broadcast
gateway, keeping transport concerns separated from core game mechanics.
"""

from .lobby import Lobby

__all__ = ['Lobby']
