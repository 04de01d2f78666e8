# ltm_mem/retrieval/__init__.py

from .composer import ResponseComposer
from .retriever import MemoryRetriever, RetrievalResult, build_context
from .scorer import RelevanceScorer, cosine_similarity, extract_keywords

__all__ = [
    "MemoryRetriever",
    "RelevanceScorer",
    "ResponseComposer",
    "RetrievalResult",
    "build_context",
    "cosine_similarity",
    "extract_keywords",
]
