# ltm_mem/extraction/extractor.py

import re
from typing import Callable

from ..config import ExtractionConfig
from ..models import MEMORY_TYPES, CandidateMemory, MemoryType
from .patterns import DEFAULT_PATTERNS, PatternTable

_SENTENCE_END = re.compile(r"[.!?]+")


def split_sentences(text: str, min_length: int = 10) -> list[str]:
    """Sentences (trimmed) longer than `min_length` characters."""
    sentences = (s.strip() for s in _SENTENCE_END.split(text))
    return [s for s in sentences if len(s) > min_length]


def summarize(sentence: str, max_length: int = 100) -> str:
    if len(sentence) <= max_length:
        return sentence
    return sentence[: max_length - 3] + "..."


class PatternClassifier:
    """Maps a sentence to memory types using the trigger table."""

    def __init__(
        self,
        patterns: PatternTable = DEFAULT_PATTERNS,
        order: tuple[MemoryType, ...] = MEMORY_TYPES,
    ) -> None:
        self.patterns = patterns
        self.order = order

    def match_count(self, sentence: str, memory_type: MemoryType) -> int:
        return sum(1 for p in self.patterns.get(memory_type, ()) if p.search(sentence))

    def classify(self, sentence: str) -> set[MemoryType]:
        return {
            t
            for t in self.order
            if any(p.search(sentence) for p in self.patterns.get(t, ()))
        }

    def primary_type(self, sentence: str) -> MemoryType | None:
        """First type in evaluation order with any matching trigger."""
        for memory_type in self.order:
            if any(p.search(sentence) for p in self.patterns.get(memory_type, ())):
                return memory_type
        return None


class MemoryExtractor:
    """
    Rule-based candidate extraction.

    - split text into sentences
    - give each sentence to at most one type (classifier's primary type)
    - summary is the sentence, truncated with "..." past the length cap
    - confidence grows with the number of triggers the sentence hit;
      an optional `noise` source replaces that with base + noise() * (1 - base)
    """

    def __init__(
        self,
        classifier: PatternClassifier | None = None,
        config: ExtractionConfig | None = None,
        noise: Callable[[], float] | None = None,
    ) -> None:
        self.classifier = classifier or PatternClassifier()
        self.config = config or ExtractionConfig()
        self.noise = noise

    def confidence_for(self, matched_triggers: int) -> float:
        cfg = self.config
        if self.noise is not None:
            return cfg.base_confidence + self.noise() * (1.0 - cfg.base_confidence)
        bonus = cfg.confidence_step * max(matched_triggers - 1, 0)
        return min(1.0, round(cfg.base_confidence + bonus, 6))

    def _candidate(self, sentence: str, memory_type: MemoryType) -> CandidateMemory:
        matched = self.classifier.match_count(sentence, memory_type)
        return CandidateMemory(
            memory_type=memory_type,
            summary=summarize(sentence, self.config.summary_max_length),
            full_text=sentence,
            confidence=self.confidence_for(matched),
            matched_triggers=matched,
        )

    def _sentences_by_type(self, text: str) -> dict[MemoryType, list[str]]:
        grouped: dict[MemoryType, list[str]] = {t: [] for t in self.classifier.order}
        for sentence in split_sentences(text, self.config.min_sentence_length):
            memory_type = self.classifier.primary_type(sentence)
            if memory_type is not None:
                grouped[memory_type].append(sentence)
        return grouped

    def extract_type(self, text: str, memory_type: MemoryType) -> list[CandidateMemory]:
        """Candidates of one type, in text order."""
        sentences = self._sentences_by_type(text).get(memory_type, [])
        return [self._candidate(s, memory_type) for s in sentences]

    def extract(self, text: str) -> list[CandidateMemory]:
        """Candidates of every type, grouped in evaluation order."""
        grouped = self._sentences_by_type(text)
        return [
            self._candidate(sentence, memory_type)
            for memory_type in self.classifier.order
            for sentence in grouped[memory_type]
        ]
