# ltm_mem/config.py

"""
Tuning constants for retrieval and extraction.

Defaults reproduce the production weights and thresholds; changing them
changes ranking and dedup behaviour, so tests pin the defaults.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _FrozenConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ScoringConfig(_FrozenConfig):
    semantic_weight: float = 0.4
    keyword_weight: float = 0.3
    context_weight: float = 0.2
    confidence_weight: float = 0.1
    default_confidence: float = 0.5

    relevance_threshold: float = 0.1
    max_results: int = Field(default=5, gt=0)
    candidate_limit: int = Field(default=50, gt=0)
    max_keywords: int = Field(default=10, gt=0)
    context_turns: int = Field(default=5, ge=0)


class ComposerConfig(_FrozenConfig):
    summaries_in_reply: int = Field(default=3, gt=0)
    relevance_weight: float = 0.8
    quantity_weight: float = 0.2
    quantity_target: int = Field(default=3, gt=0)


class ExtractionConfig(_FrozenConfig):
    min_sentence_length: int = 10
    summary_max_length: int = 100
    base_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    confidence_step: float = Field(default=0.1, ge=0.0)


class DedupConfig(_FrozenConfig):
    similarity_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    existing_limit: int = Field(default=100, gt=0)


def section(config: dict[str, Any], key: str, model: type[_FrozenConfig]) -> Any:
    """Build one frozen config section from a nested dict (or use defaults)."""
    raw = config.get(key) or {}
    if isinstance(raw, model):
        return raw
    return model(**raw)
