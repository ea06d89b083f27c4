"""Embedder capability."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Callable, Protocol

from mbox_search.exceptions import EncodeError


class Embedder(Protocol):
    """Turns text into fixed-dimension vectors.

    Implementations must preserve order and length: ``embed(texts)[i]`` is
    the vector of ``texts[i]``. Failures raise ``ModelUnavailableError`` or
    ``EncodeError``; results are never truncated or reordered.
    """

    dimension: int

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        ...

    def embed_line(self, text: str) -> list[float]:
        ...


EmbedderFactory = Callable[[], Embedder]


def check_vectors(vectors: Sequence[Sequence[float]], expected: int, dimension: int) -> None:
    """Raise EncodeError unless there are ``expected`` vectors of ``dimension`` floats."""

    if len(vectors) != expected:
        raise EncodeError(f"Embedder returned {len(vectors)} vectors for {expected} texts")
    for vector in vectors:
        if len(vector) != dimension:
            raise EncodeError(
                f"Embedding size mismatch: got {len(vector)}, expected {dimension}"
            )
