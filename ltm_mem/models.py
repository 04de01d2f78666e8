# ltm_mem/models.py

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

MemoryType = Literal["episodic", "semantic", "procedural", "emotional", "value-principle"]

# Evaluation order used by extraction; first type with a trigger match wins.
MEMORY_TYPES: tuple[MemoryType, ...] = (
    "semantic",
    "episodic",
    "procedural",
    "emotional",
    "value-principle",
)


class ConversationTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[datetime] = None


class CandidateMemory(BaseModel):
    memory_type: MemoryType
    summary: str
    full_text: str
    confidence: float = Field(ge=0.0, le=1.0)
    matched_triggers: int = 1


class MemoryModel(BaseModel):
    id: str
    user_id: str
    embedding: List[float]
    memory_type: MemoryType
    summary: str = Field(min_length=1, max_length=500)
    full_text: str = Field(min_length=1)
    details: Optional[Dict[str, Any]] = None
    confidence_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    created_at: str
    updated_at: str


class ScoredMemory(BaseModel):
    memory: MemoryModel
    score: float


class ChatSession(BaseModel):
    id: str
    user_id: str
    title: Optional[str] = None
    created_at: str


class GeneratedResponse(BaseModel):
    content: str
    relevant_memories: List[MemoryModel] = []
    confidence: float


class MemoryStats(BaseModel):
    total_memories: int
    memories_by_type: Dict[str, int]
    recent_memories: int
    avg_confidence_score: Optional[float] = None
