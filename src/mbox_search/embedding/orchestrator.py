"""Concurrent batch embedding over a fixed pool of model-holding workers.

Each worker thread builds its own embedder before accepting work, so the
model load is paid once per worker. A batch is split into contiguous
chunks, one per worker at most, which go through a bounded task queue;
finished chunks come back on a bounded result queue tagged with their chunk
index and are reassembled in input order whatever order they finish in.
Full queues block the producer; nothing is dropped.

One batch is in flight at a time. A failed chunk fails the whole batch,
after every outstanding chunk has been drained so the next batch starts
from empty queues.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional, TypeVar, cast

import structlog

from mbox_search.config import Settings
from mbox_search.exceptions import (
    ConfigurationError,
    EmbeddingError,
    EncodeError,
    ModelUnavailableError,
)

from .base import Embedder, EmbedderFactory, check_vectors

logger = structlog.get_logger()

T = TypeVar("T")


def split_chunks(items: Sequence[T], count: int) -> list[Sequence[T]]:
    """Split items into at most ``count`` contiguous, non-empty chunks.

    Chunk sizes differ by at most one; earlier chunks take the remainder.
    """

    if count < 1:
        raise ValueError("count must be at least 1")
    base, remainder = divmod(len(items), count)
    chunks = []
    start = 0
    for index in range(count):
        size = base + (1 if index < remainder else 0)
        if size == 0:
            break
        chunks.append(items[start : start + size])
        start += size
    return chunks


@dataclass(frozen=True)
class _Task:
    index: int
    texts: Sequence[str]


@dataclass(frozen=True)
class _ChunkResult:
    index: int
    vectors: Optional[list[list[float]]] = None
    error: Optional[BaseException] = None


_STOP = object()


class EmbeddingOrchestrator:
    """Order-preserving batch embedder backed by a pre-warmed worker pool."""

    def __init__(
        self,
        embedder_factory: EmbedderFactory,
        worker_count: Optional[int] = None,
        queue_capacity: Optional[int] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """Create an orchestrator. Workers start on :meth:`start`.

        Args:
            embedder_factory: Builds one embedder; called once in each worker thread.
            worker_count: Pool size. If None, uses settings.worker_count.
            queue_capacity: Task/result queue bound. If None, uses settings.queue_capacity.
            settings: Application settings. If None, uses default settings.

        Raises:
            ConfigurationError: If the pool is larger than the queues can hold.
        """
        from mbox_search.config import get_settings

        self.settings = settings or get_settings()
        self.worker_count = worker_count if worker_count is not None else self.settings.worker_count
        self.queue_capacity = (
            queue_capacity if queue_capacity is not None else self.settings.queue_capacity
        )
        if self.worker_count < 1:
            raise ConfigurationError("worker_count must be at least 1")
        # A batch has at most worker_count chunks; they must all fit in flight.
        if self.worker_count > self.queue_capacity:
            raise ConfigurationError(
                f"worker_count ({self.worker_count}) cannot exceed "
                f"queue_capacity ({self.queue_capacity})"
            )

        self._factory = embedder_factory
        self._tasks: queue.Queue[object] = queue.Queue(maxsize=self.queue_capacity)
        self._results: queue.Queue[_ChunkResult] = queue.Queue(maxsize=self.queue_capacity)
        self._ready: queue.Queue[Optional[BaseException]] = queue.Queue()
        self._workers: list[threading.Thread] = []
        self._dispatch_lock = threading.Lock()
        self.dimension: Optional[int] = None

    def __enter__(self) -> EmbeddingOrchestrator:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        """Start the workers and wait until each has built its embedder.

        Raises:
            ModelUnavailableError: If any worker fails to build its embedder.
        """

        if self._workers:
            return

        for worker_id in range(self.worker_count):
            worker = threading.Thread(
                target=self._run_worker,
                args=(worker_id,),
                name=f"embedding-worker-{worker_id}",
                daemon=True,
            )
            worker.start()
            self._workers.append(worker)

        failures = [error for error in (self._ready.get() for _ in self._workers) if error]
        if failures:
            self.close()
            error = failures[0]
            if isinstance(error, ModelUnavailableError):
                raise error
            raise ModelUnavailableError(f"Embedding worker failed to start: {error}") from error

        logger.info("embedding_pool_started", workers=self.worker_count, dimension=self.dimension)

    def close(self) -> None:
        """Stop the workers and wait for them to exit."""

        if not self._workers:
            return
        for _ in self._workers:
            self._tasks.put(_STOP)
        for worker in self._workers:
            worker.join()
        self._workers = []
        # Workers that failed to start leave their stop marker behind.
        while True:
            try:
                self._tasks.get_nowait()
            except queue.Empty:
                break
        logger.info("embedding_pool_stopped", workers=self.worker_count)

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed a batch across the pool.

        Returns:
            One vector per text, in input order.

        Raises:
            EmbeddingError: If any chunk fails; no partial result is returned.
        """

        if not self._workers:
            raise ModelUnavailableError("Embedding pool is not running")
        if not texts:
            return []

        chunks = split_chunks(texts, self.worker_count)
        with self._dispatch_lock:
            for index, chunk in enumerate(chunks):
                self._tasks.put(_Task(index=index, texts=chunk))

            by_index: dict[int, list[list[float]]] = {}
            errors: dict[int, BaseException] = {}
            for _ in chunks:
                result = self._results.get()
                if result.error is not None:
                    errors[result.index] = result.error
                else:
                    by_index[result.index] = result.vectors or []

        if errors:
            index = min(errors)
            error = errors[index]
            logger.error(
                "embedding_batch_failed",
                batch_size=len(texts),
                failed_chunks=sorted(errors),
                error=str(error),
            )
            if isinstance(error, EmbeddingError):
                raise error
            raise EncodeError(f"Chunk {index} failed: {error}") from error

        vectors = [vector for index in range(len(chunks)) for vector in by_index[index]]
        if len(vectors) != len(texts):
            raise EncodeError(f"Embedding pool returned {len(vectors)} vectors for {len(texts)} texts")
        return vectors

    def embed_line(self, text: str) -> list[float]:
        return self.embed([text])[0]

    def _run_worker(self, worker_id: int) -> None:
        try:
            embedder: Embedder = self._factory()
        except Exception as exc:  # noqa: BLE001 - reported to start()
            logger.error("embedding_worker_start_failed", worker_id=worker_id, error=str(exc))
            self._ready.put(exc)
            return

        self.dimension = embedder.dimension
        logger.debug("embedding_worker_ready", worker_id=worker_id)
        self._ready.put(None)

        while True:
            task = self._tasks.get()
            if task is _STOP:
                break
            task = cast(_Task, task)
            try:
                vectors = embedder.embed(task.texts)
                check_vectors(vectors, len(task.texts), embedder.dimension)
            except Exception as exc:  # noqa: BLE001 - surfaced by embed()
                self._results.put(_ChunkResult(index=task.index, error=exc))
            except BaseException as exc:
                # The worker dies, but embed() still gets an answer for this chunk.
                logger.error("embedding_worker_died", worker_id=worker_id, error=repr(exc))
                self._results.put(_ChunkResult(index=task.index, error=exc))
                raise
            else:
                self._results.put(_ChunkResult(index=task.index, vectors=vectors))

        logger.debug("embedding_worker_stopped", worker_id=worker_id)
