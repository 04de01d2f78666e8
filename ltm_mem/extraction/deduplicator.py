# ltm_mem/extraction/deduplicator.py

from typing import Iterable

from ..config import DedupConfig
from ..models import CandidateMemory, MemoryModel


def jaccard_similarity(a: str, b: str) -> float:
    words_a = set(a.lower().split())
    words_b = set(b.lower().split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


class Deduplicator:
    """Flags candidates whose summary nearly repeats a stored one."""

    def __init__(self, config: DedupConfig | None = None) -> None:
        self.config = config or DedupConfig()

    def find_duplicate(
        self,
        candidate: CandidateMemory,
        existing: Iterable[MemoryModel],
    ) -> MemoryModel | None:
        for mem in existing:
            if mem.memory_type != candidate.memory_type:
                continue
            if jaccard_similarity(mem.summary, candidate.summary) > self.config.similarity_threshold:
                return mem
        return None

    def is_duplicate(self, candidate: CandidateMemory, existing: Iterable[MemoryModel]) -> bool:
        return self.find_duplicate(candidate, existing) is not None
