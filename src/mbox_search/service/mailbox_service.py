"""Mailbox service.

Wires storage, embedding and vector search together. Indexing degrades
gracefully: a batch that fails to embed is logged and left out. Searching
is all-or-nothing: any failure fails the whole query.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from itertools import islice
from pathlib import Path
from typing import Optional, Protocol

import structlog

from mbox_search.config import Settings
from mbox_search.embedding import Embedder, EmbeddingOrchestrator, build_embedder_factory
from mbox_search.exceptions import EncodeError, MboxSearchError
from mbox_search.models import Message, RankedMessage
from mbox_search.search import MemoryCosine, SearchRepository
from mbox_search.storage import MailStorage, MboxFile

logger = structlog.get_logger()


class BatchEmbedder(Protocol):
    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        ...


def _batched(messages: Iterable[Message], size: int) -> Iterator[list[Message]]:
    iterator = iter(messages)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


class MailboxService:
    """Indexes an archive's bodies and answers semantic queries over them."""

    def __init__(
        self,
        storage: MailStorage,
        search: SearchRepository,
        embedder: Embedder,
        batch_embedder: Optional[BatchEmbedder] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """Initialize the service.

        Args:
            storage: Message storage.
            search: Vector index, owned by this service.
            embedder: Embedder used for queries, on the caller's thread.
            batch_embedder: Embedder used for indexing batches, typically an
                EmbeddingOrchestrator. If None, uses ``embedder``.
            settings: Application settings. If None, uses default settings.
        """
        from mbox_search.config import get_settings

        self.settings = settings or get_settings()
        self.storage = storage
        self.search = search
        self.embedder = embedder
        self.batch_embedder = batch_embedder or embedder

    @classmethod
    def from_path(cls, path: str | Path, settings: Optional[Settings] = None) -> MailboxService:
        """Build the default wiring for an mbox file.

        Opens the file, starts the embedding pool and loads one more embedder
        for queries.

        Raises:
            FileAccessError: If the file cannot be opened.
            StructuralParseError: If the file's token stream is malformed.
            ModelUnavailableError: If the embedding model cannot be loaded.
        """
        from mbox_search.config import get_settings

        s = settings or get_settings()
        factory = build_embedder_factory(s)

        storage = MboxFile(path, strict=s.strict_parse)
        orchestrator = EmbeddingOrchestrator(factory, settings=s)
        try:
            orchestrator.start()
            query_embedder = factory()
        except BaseException:
            orchestrator.close()
            storage.close()
            raise

        return cls(
            storage=storage,
            search=MemoryCosine(),
            embedder=query_embedder,
            batch_embedder=orchestrator,
            settings=s,
        )

    def __enter__(self) -> MailboxService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Stop the embedding pool (if any) and close the storage."""

        for resource in (self.batch_embedder, self.storage):
            close = getattr(resource, "close", None)
            if callable(close):
                close()

    def index_emails(self, batch_size: Optional[int] = None) -> int:
        """Embed every message with a body and store its vector.

        Args:
            batch_size: Messages per embedding batch. If None, uses settings.

        Returns:
            Number of messages indexed.
        """

        size = batch_size or self.settings.index_batch_size
        indexed = 0
        failed_batches = 0

        for batch_number, batch in enumerate(_batched(self.storage.emails(), size)):
            candidates = [message for message in batch if message.has_body]
            if not candidates:
                continue

            texts = [message.embedding_text() or "" for message in candidates]
            try:
                vectors = self.batch_embedder.embed(texts)
                if len(vectors) != len(candidates):
                    raise EncodeError(
                        f"Got {len(vectors)} vectors for {len(candidates)} messages"
                    )
                for message, vector in zip(candidates, vectors):
                    self.search.index(message.id, vector)
            except MboxSearchError as exc:
                failed_batches += 1
                logger.error(
                    "index_batch_failed",
                    batch=batch_number,
                    batch_size=len(candidates),
                    first_id=candidates[0].id,
                    error=str(exc),
                )
                continue

            indexed += len(candidates)
            logger.info("index_batch_completed", batch=batch_number, indexed=indexed)

        logger.info("index_completed", indexed=indexed, failed_batches=failed_batches)
        return indexed

    def search_email(self, query: str, k: Optional[int] = None) -> list[RankedMessage]:
        """Return the messages closest to a free-text query.

        Args:
            query: Free-text query.
            k: Maximum number of results. If None, uses settings.default_top_k.

        Returns:
            Hits sorted by descending score, each hydrated from storage.

        Raises:
            EmbeddingError: If the query cannot be embedded.
            SearchError: If the vector index cannot answer.
            EmailNotFoundError, DecodeError: If a hit cannot be hydrated.
        """

        top_k = k if k is not None else self.settings.default_top_k
        vector = self.embedder.embed_line(query)
        hits = self.search.search(vector, top_k)
        results = [RankedMessage(hit.score, self.storage.get_email(hit.id)) for hit in hits]
        logger.info("search_email_completed", k=top_k, hits=len(results))
        return results
