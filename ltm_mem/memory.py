# ltm_mem/memory.py

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

from .config import (
    ComposerConfig,
    DedupConfig,
    ExtractionConfig,
    ScoringConfig,
    section,
)
from .embedding.hash_embedder import Embedder, HashEmbedder
from .exceptions import AccessDeniedError, MemoryValidationError, SessionNotFoundError
from .extraction.deduplicator import Deduplicator
from .extraction.extractor import MemoryExtractor
from .extraction.pipeline import ExtractionPipeline
from .models import (
    ChatSession,
    ConversationTurn,
    GeneratedResponse,
    MemoryModel,
    MemoryStats,
    MemoryType,
)
from .retrieval.composer import ResponseComposer
from .retrieval.retriever import MemoryRetriever, build_context
from .retrieval.scorer import RelevanceScorer, cosine_similarity
from .storage.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)

SESSION_ERROR = "Chat session not found or access denied"
MAX_SEARCH_LIMIT = 100
RECENT_WINDOW_DAYS = 7


class MemoryEngine:
    """
    Public facade.

    - generate_response(): session check -> retrieve -> compose (read only)
    - process_conversation(): session check -> extract -> dedup -> store
    - create_memory() / search_memories() / delete_memory() /
      get_memory_stats(): authoring and dashboard helpers around the same store
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        store: SqliteStore | None = None,
        embedder: Embedder | None = None,
    ) -> None:
        config = config or {}

        sqlite_path = config.get("sqlite_path", "~/.ltm_mem/memories.db")
        embedding_dim = int(config.get("embedding_dim", 128))
        max_workers = int(config.get("max_workers", 0))

        self.scoring: ScoringConfig = section(config, "scoring", ScoringConfig)
        self.composing: ComposerConfig = section(config, "composer", ComposerConfig)
        self.extraction: ExtractionConfig = section(config, "extraction", ExtractionConfig)
        self.dedup: DedupConfig = section(config, "dedup", DedupConfig)

        # Core components
        self._owns_store = store is None
        self.store = store or SqliteStore(path=sqlite_path)
        self.embedder = embedder or HashEmbedder(dimension=embedding_dim)

        # Scoring fan-out is optional; 0 scores inline
        self._executor = ThreadPoolExecutor(max_workers=max_workers) if max_workers > 0 else None

        self.retriever = MemoryRetriever(
            store=self.store,
            embedder=self.embedder,
            scorer=RelevanceScorer(self.scoring),
            executor=self._executor,
        )
        self.composer = ResponseComposer(config=self.composing, scoring=self.scoring)
        self.pipeline = ExtractionPipeline(
            store=self.store,
            embedder=self.embedder,
            extractor=MemoryExtractor(config=self.extraction),
            deduplicator=Deduplicator(self.dedup),
        )

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #

    def create_session(self, user_id: str, title: str | None = None) -> ChatSession:
        return self.store.create_session(user_id, title=title)

    def _require_session(self, user_id: str, session_id: str) -> ChatSession:
        """Both failures carry the same message so ownership does not leak."""
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(SESSION_ERROR)
        if session.user_id != user_id:
            raise AccessDeniedError(SESSION_ERROR)
        return session

    # ------------------------------------------------------------------ #
    # GENERATE RESPONSE
    # ------------------------------------------------------------------ #

    def generate_response(
        self,
        user_id: str,
        session_id: str,
        message: str,
        history: Sequence[ConversationTurn] = (),
    ) -> GeneratedResponse:
        """
        Ground a reply in the user's stored memories.

        Steps:
        - Validate session ownership.
        - Build context from the last few turns.
        - Retrieve + rank a bounded window of memories.
        - Compose template text and a confidence value.
        """
        self._require_session(user_id, session_id)

        context = build_context(history, window=self.scoring.context_turns)
        result = self.retriever.retrieve(user_id, message, context)
        content, confidence = self.composer.compose(message, result.top_memories, result.scored)

        logger.info(
            "[MemoryEngine.generate_response] user=%s memories=%d confidence=%.3f",
            user_id,
            len(result.top_memories),
            confidence,
        )
        return GeneratedResponse(
            content=content,
            relevant_memories=result.top_memories,
            confidence=confidence,
        )

    # ------------------------------------------------------------------ #
    # PROCESS CONVERSATION
    # ------------------------------------------------------------------ #

    def process_conversation(
        self,
        user_id: str,
        session_id: str,
        turns: Sequence[ConversationTurn],
    ) -> list[MemoryModel]:
        """Extract and store new memories from the user turns."""
        self._require_session(user_id, session_id)
        return self.pipeline.process(user_id, session_id, turns)

    # ------------------------------------------------------------------ #
    # Authoring / dashboard
    # ------------------------------------------------------------------ #

    def create_memory(
        self,
        user_id: str,
        memory_type: MemoryType,
        summary: str,
        full_text: str,
        embedding: list[float] | None = None,
        details: dict[str, Any] | None = None,
        confidence_score: float | None = None,
    ) -> MemoryModel:
        """
        Store a memory written outside the extraction pipeline.

        Embeds full_text when no embedding is given. Raises
        MemoryValidationError when the owner is missing or the embedding
        size is wrong, and when the summary already exists for this type.
        """
        if not user_id:
            raise MemoryValidationError("Memory owner is required")

        if embedding is None:
            embedding = self.embedder.embed(full_text)
        elif len(embedding) != self.embedder.dimension:
            raise MemoryValidationError(
                f"Embedding must have {self.embedder.dimension} dimensions, got {len(embedding)}"
            )

        mem = self.store.insert_memory(
            user_id=user_id,
            memory_type=memory_type,
            summary=summary,
            full_text=full_text,
            embedding=embedding,
            details=details,
            confidence_score=confidence_score,
        )
        if mem is None:
            raise MemoryValidationError("An identical memory already exists")
        return mem

    def list_memories(
        self,
        user_id: str,
        memory_type: MemoryType | None = None,
        limit: int = 50,
    ) -> list[MemoryModel]:
        return self.store.list_by_user(user_id, memory_type=memory_type, limit=limit)

    def search_memories(
        self,
        user_id: str,
        query: str | None = None,
        memory_type: MemoryType | None = None,
        embedding: list[float] | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[MemoryModel]:
        """
        Filtered search over one user's memories.

        - memory_type narrows the set
        - query keeps memories whose summary or full text contains it
        - embedding ranks by cosine similarity, then stored confidence;
          without it results stay most-recently-updated first
        """
        if limit <= 0 or limit > MAX_SEARCH_LIMIT:
            raise MemoryValidationError(f"limit must be between 1 and {MAX_SEARCH_LIMIT}")
        if offset < 0:
            raise MemoryValidationError("offset must not be negative")

        if query is None and embedding is None:
            return self.store.list_by_user(
                user_id, memory_type=memory_type, limit=limit, offset=offset
            )

        # Text and vector filters run in Python over the user's rows.
        mems = self.store.list_by_user(
            user_id, memory_type=memory_type, limit=-1, offset=0
        )
        if query:
            needle = query.lower()
            mems = [
                m for m in mems if needle in m.summary.lower() or needle in m.full_text.lower()
            ]
        if embedding is not None:
            mems.sort(
                key=lambda m: (
                    cosine_similarity(m.embedding, embedding),
                    m.confidence_score or 0.0,
                ),
                reverse=True,
            )
        return mems[offset : offset + limit]

    def delete_memory(self, user_id: str, memory_id: str) -> bool:
        """Remove one of the user's memories; other users' rows are never touched."""
        deleted = self.store.delete_memory(memory_id, user_id)
        logger.info(
            "[MemoryEngine.delete_memory] user=%s memory=%s deleted=%s",
            user_id,
            memory_id,
            deleted,
        )
        return deleted

    def get_memory_stats(self, user_id: str) -> MemoryStats:
        since = (datetime.now(timezone.utc) - timedelta(days=RECENT_WINDOW_DAYS)).isoformat()
        return MemoryStats(**self.store.memory_stats(user_id, since=since))

    def close(self) -> None:
        """Shut down the executor; an injected store is left open for its owner."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        if self._owns_store:
            self.store.close()
