"""Text embedding.

Embedders implement the :class:`Embedder` capability; the orchestrator fans
batches out over a pool of them.
"""

from __future__ import annotations

from typing import Optional

from mbox_search.config import Settings

from .base import Embedder, EmbedderFactory
from .deterministic import DeterministicEmbedder
from .orchestrator import EmbeddingOrchestrator, split_chunks


def build_embedder_factory(settings: Optional[Settings] = None) -> EmbedderFactory:
    """Return a factory for the embedder selected by settings.embedding_backend."""
    from mbox_search.config import get_settings

    s = settings or get_settings()
    if s.embedding_backend == "deterministic":
        return lambda: DeterministicEmbedder(dimension=s.embedding_dimension)

    def _sentence_transformer() -> Embedder:
        from .sentence_transformer import SentenceTransformerEmbedder

        return SentenceTransformerEmbedder(s)

    return _sentence_transformer


__all__ = [
    "DeterministicEmbedder",
    "Embedder",
    "EmbedderFactory",
    "EmbeddingOrchestrator",
    "build_embedder_factory",
    "split_chunks",
]
