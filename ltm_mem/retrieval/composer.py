# ltm_mem/retrieval/composer.py

from typing import Sequence

from ..config import ComposerConfig, ScoringConfig
from ..models import MemoryModel, ScoredMemory
from .retriever import select_relevant

NO_MEMORY_REPLY = (
    "I understand your message, but I don't have specific memories that directly "
    "relate to this topic. Could you provide more context or ask me something else "
    "I might be able to help with based on our previous conversations?"
)

# Checked in order; procedural-only replies get no prefix.
PREFIXES: tuple[tuple[str, str], ...] = (
    ("episodic", "Based on what we've discussed before, "),
    ("semantic", "From what I know about this topic, "),
    ("emotional", "Considering the emotional context, "),
    ("value-principle", "Given your values and principles, "),
)


class ResponseComposer:
    """Template reply built from the top retrieved memories."""

    def __init__(
        self,
        config: ComposerConfig | None = None,
        scoring: ScoringConfig | None = None,
    ) -> None:
        self.config = config or ComposerConfig()
        self.scoring = scoring or ScoringConfig()

    @staticmethod
    def prefix_for(memories: Sequence[MemoryModel]) -> str:
        present = {m.memory_type for m in memories}
        for memory_type, prefix in PREFIXES:
            if memory_type in present:
                return prefix
        return ""

    def compose_text(self, query: str, memories: Sequence[MemoryModel]) -> str:
        if not memories:
            return NO_MEMORY_REPLY

        recalled = ". ".join(m.summary for m in memories[: self.config.summaries_in_reply])
        return (
            f"{self.prefix_for(memories)}I recall that {recalled}. "
            f'This seems relevant to your current question about "{query}". '
            "Would you like me to elaborate on any specific aspect, or is there "
            "something particular you'd like to know more about?"
        )

    def confidence(
        self,
        top_memories: Sequence[MemoryModel],
        scored: Sequence[ScoredMemory],
    ) -> float:
        cfg = self.config
        relevant = select_relevant(scored, self.scoring)
        avg = sum(s.score for s in relevant) / len(relevant) if relevant else 0.0
        quantity = min(len(top_memories) / cfg.quantity_target, 1.0)
        value = min(avg * cfg.relevance_weight + quantity * cfg.quantity_weight, 1.0)
        return round(value, 3)

    def compose(
        self,
        query: str,
        top_memories: Sequence[MemoryModel],
        scored: Sequence[ScoredMemory],
    ) -> tuple[str, float]:
        return self.compose_text(query, top_memories), self.confidence(top_memories, scored)
