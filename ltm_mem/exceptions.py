# ltm_mem/exceptions.py

"""Error hierarchy for the memory engine."""


class LtmError(Exception):
    """Base class for ltm_mem errors."""


class SessionNotFoundError(LtmError):
    """Raised when a chat session does not exist."""


class AccessDeniedError(SessionNotFoundError):
    """Raised when a session exists but belongs to another user.

    Subclasses SessionNotFoundError and carries the same message so callers
    cannot tell the two apart.
    """


class MemoryValidationError(LtmError):
    """Raised when a memory cannot be created from the given input."""


class StorageError(LtmError):
    """Raised when the datastore fails. Never retried by the engine."""
