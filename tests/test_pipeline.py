"""Tests for the extraction pipeline."""

import threading

from ltm_mem.embedding.hash_embedder import HashEmbedder
from ltm_mem.extraction.pipeline import ExtractionPipeline, _KeyedLocks
from ltm_mem.models import ConversationTurn


def _user(content: str) -> ConversationTurn:
    return ConversationTurn(role="user", content=content)


def _assistant(content: str) -> ConversationTurn:
    return ConversationTurn(role="assistant", content=content)


def test_semantic_memories_from_preferences(store) -> None:
    turns = [
        _user("I love playing guitar and I prefer acoustic over electric. My favorite genre is folk music."),
        _assistant("That sounds wonderful! Folk music has such rich storytelling."),
    ]
    memories = ExtractionPipeline(store).process("u1", "s1", turns)

    assert [m.memory_type for m in memories] == ["semantic", "semantic"]
    guitar = memories[0]
    assert "guitar" in guitar.summary.lower()
    assert guitar.user_id == "u1"
    assert isinstance(guitar.confidence_score, float)
    assert set(guitar.details) == {"session_id", "extracted_at", "confidence_reason", "source"}
    assert guitar.details["session_id"] == "s1"
    assert guitar.details["confidence_reason"] == "pattern_match"
    assert guitar.details["source"] == "conversation"


def test_memories_are_persisted_with_embedding(store) -> None:
    (mem,) = ExtractionPipeline(store).process("u1", "s1", [_user("I love guitar music every evening.")])

    stored = store.get_by_id(mem.id)
    assert stored == mem
    assert stored.embedding == HashEmbedder().embed("I love guitar music every evening")


def test_user_turns_are_joined(store) -> None:
    turns = [_user("Yesterday I went to the concert hall."), _user("I love folk music a lot.")]
    memories = ExtractionPipeline(store).process("u1", "s1", turns)
    assert {m.memory_type for m in memories} == {"semantic", "episodic"}


def test_assistant_turns_are_ignored(store) -> None:
    turns = [_assistant("I love helping users and I believe in being helpful.")]
    assert ExtractionPipeline(store).process("u1", "s1", turns) == []
    assert store.list_by_user("u1") == []


def test_no_turns(store) -> None:
    assert ExtractionPipeline(store).process("u1", "s1", []) == []


def test_second_run_creates_nothing(store) -> None:
    pipeline = ExtractionPipeline(store)
    turns = [_user("I love playing guitar music every evening. Yesterday I visited my aunt.")]

    first = pipeline.process("u1", "s1", turns)
    second = pipeline.process("u1", "s1", turns)

    assert len(first) == 2
    assert second == []
    assert len(store.list_by_user("u1")) == 2


def test_duplicates_are_per_user(store) -> None:
    pipeline = ExtractionPipeline(store)
    turns = [_user("I love playing guitar music every evening.")]

    assert len(pipeline.process("u1", "s1", turns)) == 1
    assert len(pipeline.process("u2", "s2", turns)) == 1


def test_near_duplicate_in_same_batch_is_skipped(store) -> None:
    turns = [_user("I love guitar music every evening. I love guitar music every evening!")]
    memories = ExtractionPipeline(store).process("u1", "s1", turns)
    assert len(memories) == 1


def test_concurrent_runs_do_not_duplicate(store) -> None:
    pipeline = ExtractionPipeline(store)
    turns = [_user("I love playing guitar music every evening. Yesterday I visited my aunt.")]
    barrier = threading.Barrier(4)
    results: list[int] = []

    def _run() -> None:
        barrier.wait()
        results.append(len(pipeline.process("u1", "s1", turns)))

    threads = [threading.Thread(target=_run) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(results) == 2
    assert len(store.list_by_user("u1")) == 2


def test_dedup_spans_sessions_and_pipelines(store) -> None:
    turns = [_user("I love playing guitar music every evening.")]
    assert len(ExtractionPipeline(store).process("u1", "s1", turns)) == 1
    assert ExtractionPipeline(store).process("u1", "s2", turns) == []


def test_user_lock_is_shared_while_held() -> None:
    locks = _KeyedLocks()
    lock = locks.get("u1")
    assert locks.get("u1") is lock
    assert locks.get("u2") is not lock
    assert len(locks) == 1


def test_user_locks_are_dropped_after_runs(store) -> None:
    pipeline = ExtractionPipeline(store)
    for i in range(5):
        pipeline.process(f"u{i}", "s1", [_user("I love playing guitar music every evening.")])
    assert len(pipeline._user_locks) == 0
