# ltm_mem/extraction/pipeline.py

from __future__ import annotations

import logging
import threading
import weakref
from typing import TYPE_CHECKING, Sequence

from ..embedding.hash_embedder import Embedder, HashEmbedder
from ..models import CandidateMemory, ConversationTurn, MemoryModel
from ..storage.sqlite_store import now_iso
from .deduplicator import Deduplicator
from .extractor import MemoryExtractor

if TYPE_CHECKING:
    from ..storage.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)

PROVENANCE = "pattern_match"


class _KeyedLocks:
    """
    One lock per key, created on first use.

    Entries are weak: a key's lock disappears once no caller holds it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)


class ExtractionPipeline:
    """
    Turns conversation turns into persisted memories.

    - only user turns are read, joined into one text
    - extractor produces candidates for all five types
    - each candidate is checked against stored memories of its type;
      survivors are embedded and inserted
    - runs for the same user are serialised so the duplicate check and the
      insert cannot interleave; the store's fingerprint index backs this up
      across processes
    """

    def __init__(
        self,
        store: SqliteStore,
        embedder: Embedder | None = None,
        extractor: MemoryExtractor | None = None,
        deduplicator: Deduplicator | None = None,
    ) -> None:
        self.store = store
        self.embedder = embedder or HashEmbedder()
        self.extractor = extractor or MemoryExtractor()
        self.deduplicator = deduplicator or Deduplicator()
        self._user_locks = _KeyedLocks()

    # ------------------------------------------------------------------ #
    # Mapping
    # ------------------------------------------------------------------ #

    @staticmethod
    def details_for(session_id: str) -> dict[str, str]:
        return {
            "session_id": session_id,
            "extracted_at": now_iso(),
            "confidence_reason": PROVENANCE,
            "source": "conversation",
        }

    def _persist_candidate(
        self,
        user_id: str,
        session_id: str,
        candidate: CandidateMemory,
    ) -> MemoryModel | None:
        existing = self.store.list_by_user(
            user_id,
            memory_type=candidate.memory_type,
            limit=self.deduplicator.config.existing_limit,
        )
        if self.deduplicator.is_duplicate(candidate, existing):
            logger.debug(
                "[ExtractionPipeline] skip duplicate %s: %s",
                candidate.memory_type,
                candidate.summary[:80],
            )
            return None

        return self.store.insert_memory(
            user_id=user_id,
            memory_type=candidate.memory_type,
            summary=candidate.summary,
            full_text=candidate.full_text,
            embedding=self.embedder.embed(candidate.full_text),
            details=self.details_for(session_id),
            confidence_score=candidate.confidence,
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def process(
        self,
        user_id: str,
        session_id: str,
        turns: Sequence[ConversationTurn],
    ) -> list[MemoryModel]:
        user_turns = [t for t in turns if t.role == "user"]
        if not user_turns:
            return []

        text = " ".join(t.content for t in user_turns)
        candidates = self.extractor.extract(text)
        logger.info("[ExtractionPipeline.process] Extracted %d candidates", len(candidates))

        created: list[MemoryModel] = []
        with self._user_locks.get(user_id):
            for candidate in candidates:
                mem = self._persist_candidate(user_id, session_id, candidate)
                if mem is not None:
                    created.append(mem)

        logger.info(
            "[ExtractionPipeline.process] Stored %d new memories for user=%s",
            len(created),
            user_id,
        )
        return created
