# ltm_mem/embedding/hash_embedder.py

import math
from typing import List, Protocol


class Embedder(Protocol):
    """Anything that turns text into a fixed-size vector."""

    dimension: int

    def embed(self, text: str) -> List[float]: ...


def _token_hash(token: str) -> int:
    """
    31x rolling hash over UTF-16 code units, wrapped to a signed 32-bit int.

    Characters outside the BMP contribute both surrogates.
    """
    data = token.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


class HashEmbedder:
    """
    Deterministic bag-of-words embedder.

    Placeholder for a real embedding model:
    - each token lands in one bucket (hash % dimension)
    - neighbouring buckets get a small spread so near hashes stay similar
    - result is L2-normalised (zero vector stays zero)

    Changing `dimension` invalidates every stored embedding.
    """

    def __init__(self, dimension: int = 128, spread: float = 0.3) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension
        self.spread = spread

    def embed(self, text: str) -> List[float]:
        vec = [0.0] * self.dimension
        last = self.dimension - 1

        for token in text.lower().split():
            idx = abs(_token_hash(token)) % self.dimension
            vec[idx] += 1.0
            if idx > 0:
                vec[idx - 1] += self.spread
            if idx < last:
                vec[idx + 1] += self.spread

        norm = math.sqrt(sum(v * v for v in vec))
        if norm > 0:
            vec = [v / norm for v in vec]
        return vec
