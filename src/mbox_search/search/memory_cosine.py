"""In-memory cosine similarity index."""

from __future__ import annotations

import heapq
import itertools
import math
from collections.abc import Sequence

import structlog

from mbox_search.exceptions import SearchError
from mbox_search.models import SearchResult

logger = structlog.get_logger()


def _norm(vector: Sequence[float]) -> float:
    return math.sqrt(sum(x * x for x in vector))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 if either has zero norm."""

    return _cosine(a, _norm(a), b, _norm(b))


def _cosine(a: Sequence[float], norm_a: float, b: Sequence[float], norm_b: float) -> float:
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    dot_product = sum(x * y for x, y in zip(a, b))
    return dot_product / (norm_a * norm_b)


class MemoryCosine:
    """Vector index held in a dict, searched exhaustively.

    Not safe for concurrent writers; the mailbox service is its only owner.
    """

    def __init__(self) -> None:
        self._vectors: dict[int, tuple[list[float], float]] = {}

    def __len__(self) -> int:
        return len(self._vectors)

    def index(self, email_id: int, vector: Sequence[float]) -> None:
        values = [float(x) for x in vector]
        self._vectors[email_id] = (values, _norm(values))

    def search(self, query: Sequence[float], k: int) -> list[SearchResult]:
        if k <= 0 or not self._vectors:
            return []

        query_values = [float(x) for x in query]
        query_norm = _norm(query_values)

        # Min-heap of the best k; the root is the worst score kept so far.
        heap: list[tuple[float, int, int]] = []
        tiebreak = itertools.count()
        for email_id, (vector, norm) in self._vectors.items():
            if len(vector) != len(query_values):
                raise SearchError(
                    f"Query has {len(query_values)} dims but email {email_id} has {len(vector)}"
                )
            score = _cosine(query_values, query_norm, vector, norm)
            if len(heap) < k:
                heapq.heappush(heap, (score, next(tiebreak), email_id))
            elif score > heap[0][0]:
                heapq.heapreplace(heap, (score, next(tiebreak), email_id))

        results = [SearchResult(id=email_id, score=score) for score, _, email_id in heap]
        results.sort(key=lambda r: r.score, reverse=True)
        logger.debug("search_completed", k=k, indexed=len(self._vectors), hits=len(results))
        return results
