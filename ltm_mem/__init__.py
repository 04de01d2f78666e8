# ltm_mem/__init__.py

from .exceptions import (
    AccessDeniedError,
    LtmError,
    MemoryValidationError,
    SessionNotFoundError,
    StorageError,
)
from .memory import MemoryEngine
from .models import (
    MEMORY_TYPES,
    CandidateMemory,
    ChatSession,
    ConversationTurn,
    GeneratedResponse,
    MemoryModel,
    MemoryStats,
    MemoryType,
    ScoredMemory,
)

__all__ = [
    "MEMORY_TYPES",
    "AccessDeniedError",
    "CandidateMemory",
    "ChatSession",
    "ConversationTurn",
    "GeneratedResponse",
    "LtmError",
    "MemoryEngine",
    "MemoryModel",
    "MemoryStats",
    "MemoryType",
    "MemoryValidationError",
    "ScoredMemory",
    "SessionNotFoundError",
    "StorageError",
]
