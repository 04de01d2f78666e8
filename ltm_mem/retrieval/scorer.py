# ltm_mem/retrieval/scorer.py

import math
import re
from typing import Sequence

from ..config import ScoringConfig
from ..models import MemoryModel

STOP_WORDS = frozenset(
    {
        "the", "is", "at", "which", "on", "a", "an", "and", "or",
        "but", "in", "with", "to", "for", "of", "as", "by",
    }
)

_NON_WORD = re.compile(r"[^\w\s]", re.ASCII)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of two vectors; 0.0 for mismatched lengths or a zero vector."""
    if len(a) != len(b):
        return 0.0

    dot = norm_a = norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def extract_keywords(text: str, limit: int = 10) -> list[str]:
    words = _NON_WORD.sub(" ", text.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS][:limit]


class RelevanceScorer:
    """
    Weighted relevance of one memory to a query.

    score = w_sem * cosine(memory, query)
          + w_kw  * keyword overlap
          + w_ctx * context overlap
          + w_conf * stored confidence (default when missing)
    """

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or ScoringConfig()

    @staticmethod
    def _memory_text(memory: MemoryModel) -> str:
        return f"{memory.summary} {memory.full_text}".lower()

    @staticmethod
    def keyword_overlap(memory_text: str, keywords: Sequence[str]) -> float:
        matches = sum(1 for k in keywords if k in memory_text)
        return matches / max(len(keywords), 1)

    @staticmethod
    def context_overlap(memory_text: str, context: str) -> float:
        # Denominator counts every context token, short ones included.
        words = context.lower().split()
        matches = sum(1 for w in words if len(w) > 2 and w in memory_text)
        return matches / max(len(words), 1)

    def score(
        self,
        memory: MemoryModel,
        query_vector: Sequence[float],
        keywords: Sequence[str],
        context: str,
    ) -> float:
        cfg = self.config
        text = self._memory_text(memory)

        semantic = cosine_similarity(memory.embedding, query_vector)
        keyword = self.keyword_overlap(text, keywords)
        ctx = self.context_overlap(text, context)
        # Falsy confidence (None or 0) falls back to the default.
        confidence = memory.confidence_score or cfg.default_confidence

        return (
            semantic * cfg.semantic_weight
            + keyword * cfg.keyword_weight
            + ctx * cfg.context_weight
            + confidence * cfg.confidence_weight
        )
