"""Deterministic, non-semantic embeddings.

Vectors are derived from hash-seeded RNGs, so the same text always maps to
the same vector without loading a model. Each word gets its own random
direction and a text is the normalised sum of its words, which makes texts
sharing vocabulary land close together. Useful for development and tests;
not a substitute for a real model.
"""

from __future__ import annotations

import hashlib
import math
import random
import re
from collections.abc import Sequence
from functools import lru_cache

VECTOR_SIZE = 384
# Each cached word holds a full vector.
WORD_CACHE_SIZE = 4096

_WORD = re.compile(r"\w+", re.UNICODE)


def _normalize(vec: list[float]) -> list[float]:
    norm = math.sqrt(sum(v * v for v in vec))
    if norm == 0.0:
        return vec
    return [v / norm for v in vec]


@lru_cache(maxsize=WORD_CACHE_SIZE)
def _word_vector(word: str, size: int) -> tuple[float, ...]:
    digest = hashlib.sha256(word.encode("utf-8")).digest()
    seed = int.from_bytes(digest[:8], "big", signed=False)

    rng = random.Random(seed)
    return tuple(rng.uniform(-1.0, 1.0) for _ in range(size))


def vectorize_text_deterministic(text: str, size: int = VECTOR_SIZE) -> list[float]:
    """Generate a deterministic unit-length vector from text.

    Args:
        text: Input text.
        size: Vector dimensionality.

    Returns:
        Unit-length vector of floats, or the zero vector for text without words.
    """

    vec = [0.0] * size
    for word in _WORD.findall(text.lower()):
        for i, value in enumerate(_word_vector(word, size)):
            vec[i] += value
    return _normalize(vec)


class DeterministicEmbedder:
    """Embedder backed by :func:`vectorize_text_deterministic`."""

    def __init__(self, dimension: int = VECTOR_SIZE) -> None:
        self.dimension = dimension

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        return [vectorize_text_deterministic(text, size=self.dimension) for text in texts]

    def embed_line(self, text: str) -> list[float]:
        return self.embed([text])[0]
