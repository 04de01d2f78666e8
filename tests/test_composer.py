"""Tests for reply composition."""

import re

from ltm_mem.models import MemoryModel, ScoredMemory
from ltm_mem.retrieval.composer import NO_MEMORY_REPLY, ResponseComposer


def _memory(summary: str, memory_type: str = "semantic") -> MemoryModel:
    return MemoryModel(
        id=summary,
        user_id="u1",
        embedding=[0.0],
        memory_type=memory_type,
        summary=summary,
        full_text=summary,
        created_at="2025-01-01T00:00:00+00:00",
        updated_at="2025-01-01T00:00:00+00:00",
    )


def _scored(*pairs: tuple[MemoryModel, float]) -> list[ScoredMemory]:
    return [ScoredMemory(memory=m, score=s) for m, s in pairs]


def test_no_memories_reply_and_low_confidence() -> None:
    text, confidence = ResponseComposer().compose("hello?", [], [])
    assert text == NO_MEMORY_REPLY
    assert re.search(r"don't have specific memories|provide more context", text, re.I)
    assert confidence == 0.0


def test_episodic_prefix_wins() -> None:
    mems = [_memory("likes tea", "semantic"), _memory("went hiking", "episodic")]
    text = ResponseComposer().compose_text("q", mems)
    assert text.startswith("Based on what we've discussed before, I recall that")


def test_prefix_priority_after_episodic() -> None:
    composer = ResponseComposer()
    assert composer.prefix_for([_memory("a", "value-principle"), _memory("b", "semantic")]).startswith(
        "From what I know"
    )
    assert composer.prefix_for([_memory("a", "value-principle"), _memory("b", "emotional")]).startswith(
        "Considering the emotional context"
    )
    assert composer.prefix_for([_memory("a", "value-principle")]).startswith("Given your values")


def test_procedural_only_has_no_prefix() -> None:
    text = ResponseComposer().compose_text("q", [_memory("brews coffee first", "procedural")])
    assert text.startswith("I recall that brews coffee first.")


def test_reply_joins_top_three_summaries_and_quotes_query() -> None:
    mems = [_memory(s) for s in ("one", "two", "three", "four")]
    text = ResponseComposer().compose_text("What do I like?", mems)
    assert "I recall that one. two. three." in text
    assert "four" not in text
    assert 'your current question about "What do I like?"' in text
    assert text.endswith("know more about?")


def test_confidence_blends_relevance_and_quantity() -> None:
    a, b, c = _memory("a"), _memory("b"), _memory("c")
    scored = _scored((a, 0.9), (b, 0.6), (c, 0.05))
    # avg(0.9, 0.6) * 0.8 + (2 / 3) * 0.2
    assert ResponseComposer().confidence([a, b], scored) == 0.733


def test_confidence_is_capped_at_one() -> None:
    mems = [_memory(s) for s in ("a", "b", "c", "d")]
    scored = _scored(*[(m, 1.0) for m in mems])
    assert ResponseComposer().confidence(mems, scored) == 1.0


def test_confidence_averages_only_the_top_five() -> None:
    mems = [_memory(str(i)) for i in range(6)]
    scored = _scored(*[(m, s) for m, s in zip(mems, (0.5, 0.5, 0.5, 0.5, 0.5, 0.2))])
    # sixth score is above threshold but outside the top five
    assert ResponseComposer().confidence(mems[:5], scored) == round(0.5 * 0.8 + 0.2, 3)
