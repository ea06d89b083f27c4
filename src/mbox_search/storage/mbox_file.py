"""mbox archive storage backed by a read-only memory map.

The file is mapped once, lexed straight from the map and parsed into
byte-range records. Messages are decoded from the map on every access and
never cached.

Callers must not truncate or rewrite the file while the storage is open:
the map reflects the file's current contents and a shrinking file makes
reads fail with SIGBUS. Close the storage (or leave its ``with`` block)
before modifying the archive.
"""

from __future__ import annotations

import mmap
import threading
from collections.abc import Iterator
from pathlib import Path

import structlog

from mbox_search.exceptions import (
    DecodeError,
    EmailNotFoundError,
    FileAccessError,
    StorageClosedError,
)
from mbox_search.mbox import parse, tokenize
from mbox_search.models import BodyPart, ByteRange, Message, MessageRecord

from .decoding import decode_body, decode_header_value

logger = structlog.get_logger()


def _map_file(path: Path) -> mmap.mmap | None:
    try:
        with path.open("rb") as handle:
            # Zero-length files cannot be mapped.
            if path.stat().st_size == 0:
                return None
            return mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ)
    except OSError as exc:
        raise FileAccessError(f"Cannot open mbox file {path}: {exc}") from exc


class MboxFile:
    """Message storage over a single mbox file."""

    def __init__(self, path: str | Path, strict: bool = True) -> None:
        """Map and parse an mbox file.

        Args:
            path: Path to the mbox file.
            strict: Abort on a malformed token stack instead of skipping.

        Raises:
            FileAccessError: If the file cannot be opened.
            StructuralParseError: If the token stream is malformed.
        """

        self.path = Path(path)
        self._lock = threading.Lock()
        self._map = _map_file(self.path)
        self._view = memoryview(self._map) if self._map is not None else memoryview(b"")

        self._records: list[MessageRecord] = []
        if self._map is not None:
            try:
                self._records = parse(tokenize(iter(self._map.readline, b"")), strict=strict)
            except BaseException:
                self._release()
                raise

        self._closed = False
        logger.info("mbox_storage_opened", path=str(self.path), emails=len(self._records))

    def __enter__(self) -> MboxFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the memory map. Reads after this raise StorageClosedError."""

        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._release()
        logger.info("mbox_storage_closed", path=str(self.path))

    def get_email(self, email_id: int) -> Message:
        if not 0 <= email_id < len(self._records):
            raise EmailNotFoundError(f"No email with id {email_id}")
        record = self._records[email_id]

        with self._lock:
            if self._closed:
                raise StorageClosedError(f"Storage for {self.path} is closed")
            sender = self._header(record.sender)
            subject = self._header(record.subject)
            body_text = self._body(record.first_body(html=False))
            body_html = self._body(record.first_body(html=True))

        return Message(
            id=email_id,
            sender=sender,
            date=record.date,
            subject=subject,
            body_text=body_text,
            body_html=body_html,
        )

    def count_emails(self) -> int:
        return len(self._records)

    def emails(self) -> Iterator[Message]:
        for email_id in range(len(self._records)):
            try:
                yield self.get_email(email_id)
            except DecodeError as exc:
                logger.warning("mbox_email_skipped", email_id=email_id, error=str(exc))

    def record(self, email_id: int) -> MessageRecord:
        """Return the raw byte-range record behind a message id."""

        if not 0 <= email_id < len(self._records):
            raise EmailNotFoundError(f"No email with id {email_id}")
        return self._records[email_id]

    def _header(self, span: ByteRange) -> str:
        with self._view[span.start : span.end] as raw:
            return decode_header_value(raw)

    def _body(self, part: BodyPart | None) -> str | None:
        if part is None:
            return None
        with self._view[part.content.start : part.content.end] as raw:
            try:
                return decode_body(raw, part.transfer_encoding)
            except DecodeError as exc:
                logger.debug(
                    "mbox_body_decode_failed",
                    content_type=part.content_type,
                    transfer_encoding=part.transfer_encoding,
                    error=str(exc),
                )
                return None

    def _release(self) -> None:
        self._view.release()
        if self._map is not None:
            self._map.close()
