# ltm_mem/extraction/__init__.py

from .deduplicator import Deduplicator, jaccard_similarity
from .extractor import MemoryExtractor, PatternClassifier, split_sentences, summarize
from .patterns import DEFAULT_PATTERNS
from .pipeline import ExtractionPipeline

__all__ = [
    "DEFAULT_PATTERNS",
    "Deduplicator",
    "ExtractionPipeline",
    "MemoryExtractor",
    "PatternClassifier",
    "jaccard_similarity",
    "split_sentences",
    "summarize",
]
