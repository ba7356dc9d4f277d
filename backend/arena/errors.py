"""Exceptions raised by the user directory and surfaced to clients."""


class ArenaError(Exception):
    """Base class for application-level exceptions."""


class PersistenceError(ArenaError):
    """Raised when a user record could not be written."""
