"""Vector search over message embeddings."""

from .base import SearchRepository
from .memory_cosine import MemoryCosine, cosine_similarity

__all__ = ["MemoryCosine", "SearchRepository", "cosine_similarity"]
