"""Sentence-transformers embedder.

Loads one model instance per embedder; the orchestrator creates one embedder
per worker so that model state is never shared between threads.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional

import structlog

from mbox_search.config import Settings
from mbox_search.exceptions import EncodeError, ModelUnavailableError
from mbox_search.utils import retry_on_failure

from .base import check_vectors

logger = structlog.get_logger()


class SentenceTransformerEmbedder:
    """Embedder running a local sentence-transformers model."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Load the configured model.

        Args:
            settings: Application settings. If None, uses default settings.

        Raises:
            ModelUnavailableError: If the library is missing or the model cannot be loaded.
        """
        from mbox_search.config import get_settings

        self.settings = settings or get_settings()
        self.dimension = self.settings.embedding_dimension
        self._model = self._load_model()

        loaded_dimension = self._model.get_sentence_embedding_dimension()
        if loaded_dimension is not None and loaded_dimension != self.dimension:
            raise ModelUnavailableError(
                f"Model {self.settings.embedding_model} produces {loaded_dimension} dims, "
                f"expected {self.dimension}"
            )
        logger.info(
            "embedding_model_loaded",
            model=self.settings.embedding_model,
            device=self.settings.embedding_device,
            dimension=self.dimension,
        )

    def _load_model(self) -> Any:
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as exc:
            raise ModelUnavailableError(
                "sentence-transformers is not installed; install the 'model' extra "
                "or set MBOX_SEARCH_EMBEDDING_BACKEND=deterministic"
            ) from exc

        load = retry_on_failure(
            max_retries=self.settings.model_load_retries,
            delay=self.settings.model_load_retry_delay,
            exceptions=(OSError, ValueError, RuntimeError),
        )(SentenceTransformer)
        try:
            return load(self.settings.embedding_model, device=self.settings.embedding_device)
        except (OSError, ValueError, RuntimeError) as exc:
            raise ModelUnavailableError(
                f"Cannot load embedding model {self.settings.embedding_model}: {exc}"
            ) from exc

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            vectors = self._model.encode(
                list(texts),
                show_progress_bar=False,
                convert_to_numpy=True,
            ).tolist()
        except (RuntimeError, ValueError, TypeError) as exc:
            raise EncodeError(f"Failed to encode {len(texts)} texts: {exc}") from exc
        check_vectors(vectors, len(texts), self.dimension)
        return vectors

    def embed_line(self, text: str) -> list[float]:
        return self.embed([text])[0]
