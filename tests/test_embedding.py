"""Tests for the hash embedder."""

import math

import pytest

from ltm_mem.embedding.hash_embedder import HashEmbedder, _token_hash


def test_token_hash_matches_31x_rolling_hash() -> None:
    assert _token_hash("a") == 97
    assert _token_hash("hello") == 99162322


def test_token_hash_wraps_to_signed_int32() -> None:
    # Classic string whose 31x hash is exactly INT32_MIN
    assert _token_hash("polygenelubricants") == -(2**31)


def test_token_hash_uses_utf16_surrogate_pairs() -> None:
    # U+1F600 is D83D DE00 in UTF-16
    assert _token_hash("\U0001F600") == 0xD83D * 31 + 0xDE00
    assert _token_hash("é") == 0xE9


def test_embed_buckets_astral_tokens_by_code_units() -> None:
    vec = HashEmbedder().embed("\U0001F600")
    assert vec[(0xD83D * 31 + 0xDE00) % 128] > vec[0x1F600 % 128]


def test_embed_is_deterministic_and_case_insensitive() -> None:
    emb = HashEmbedder()
    assert emb.embed("I love Pizza") == emb.embed("i love pizza")
    assert emb.embed("I love Pizza") == emb.embed("I love Pizza")


def test_embed_has_fixed_dimension_and_unit_norm() -> None:
    vec = HashEmbedder().embed("the quick brown fox jumps over the lazy dog")
    assert len(vec) == 128
    assert math.sqrt(sum(v * v for v in vec)) == pytest.approx(1.0)


def test_embed_spreads_into_neighbours() -> None:
    vec = HashEmbedder().embed("a")
    norm = math.sqrt(1 + 2 * 0.3**2)
    assert vec[97] == pytest.approx(1 / norm)
    assert vec[96] == pytest.approx(0.3 / norm)
    assert vec[98] == pytest.approx(0.3 / norm)
    assert sum(1 for v in vec if v) == 3


def test_embed_first_bucket_has_no_left_neighbour() -> None:
    vec = HashEmbedder(dimension=97).embed("a")
    norm = math.sqrt(1 + 0.3**2)
    assert vec[0] == pytest.approx(1 / norm)
    assert vec[1] == pytest.approx(0.3 / norm)
    assert vec[96] == 0.0


def test_empty_text_is_zero_vector() -> None:
    assert HashEmbedder().embed("   ") == [0.0] * 128


def test_invalid_dimension() -> None:
    with pytest.raises(ValueError):
        HashEmbedder(dimension=0)
