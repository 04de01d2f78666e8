# ltm_mem/retrieval/retriever.py

from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

from ..config import ScoringConfig
from ..embedding.hash_embedder import Embedder, HashEmbedder
from ..models import ConversationTurn, MemoryModel, ScoredMemory
from .scorer import RelevanceScorer, extract_keywords

if TYPE_CHECKING:
    from ..storage.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


@dataclass
class RetrievalResult:
    top_memories: list[MemoryModel] = field(default_factory=list)
    scored: list[ScoredMemory] = field(default_factory=list)


def build_context(turns: Sequence[ConversationTurn], window: int = 5) -> str:
    """Content of the last `window` turns joined by spaces."""
    if window <= 0:
        return ""
    return " ".join(t.content for t in turns[-window:])


def select_relevant(scored: Sequence[ScoredMemory], config: ScoringConfig) -> list[ScoredMemory]:
    """Scores above the threshold, capped to max_results. Input must already be ranked."""
    return [s for s in scored if s.score > config.relevance_threshold][: config.max_results]


class MemoryRetriever:
    """
    Ranks a bounded window of a user's memories against a query.

    Steps:
    - fetch the `candidate_limit` most recently updated memories
    - embed the query, extract its keywords
    - score every candidate (optionally on an executor)
    - stable sort by score, keep scores above threshold, cap to max_results
    """

    def __init__(
        self,
        store: SqliteStore,
        embedder: Embedder | None = None,
        scorer: RelevanceScorer | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.store = store
        self.embedder = embedder or HashEmbedder()
        self.scorer = scorer or RelevanceScorer()
        self.executor = executor

    @property
    def config(self) -> ScoringConfig:
        return self.scorer.config

    def score_candidates(
        self,
        candidates: Sequence[MemoryModel],
        query: str,
        context: str,
    ) -> list[ScoredMemory]:
        """Score candidates and rank them; ties keep fetch order."""
        query_vector = self.embedder.embed(query)
        keywords = extract_keywords(query, limit=self.config.max_keywords)

        def _score(mem: MemoryModel) -> float:
            return self.scorer.score(mem, query_vector, keywords, context)

        if self.executor is not None and len(candidates) > 1:
            # map() yields results in input order regardless of completion order
            scores = list(self.executor.map(_score, candidates))
        else:
            scores = [_score(m) for m in candidates]

        scored = [ScoredMemory(memory=m, score=s) for m, s in zip(candidates, scores)]
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored

    def retrieve(self, user_id: str, query: str, context: str = "") -> RetrievalResult:
        candidates = self.store.list_by_user(
            user_id,
            order_by="updated_at",
            limit=self.config.candidate_limit,
        )
        if not candidates:
            logger.debug("[MemoryRetriever.retrieve] no memories for user=%s", user_id)
            return RetrievalResult()

        scored = self.score_candidates(candidates, query, context)
        top = [s.memory for s in select_relevant(scored, self.config)]

        logger.debug(
            "[MemoryRetriever.retrieve] user=%s candidates=%d relevant=%d",
            user_id,
            len(candidates),
            len(top),
        )
        return RetrievalResult(top_memories=top, scored=scored)
