"""Vector search capability."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from mbox_search.models import SearchResult


class SearchRepository(Protocol):
    """Maps message ids to vectors and answers nearest-neighbour queries."""

    def index(self, email_id: int, vector: Sequence[float]) -> None:
        """Insert or replace the vector of a message (last write wins)."""
        ...

    def search(self, query: Sequence[float], k: int) -> list[SearchResult]:
        """Return at most ``k`` hits sorted by descending score.

        Raises:
            SearchError: If the query cannot be compared with the indexed vectors.
        """
        ...
