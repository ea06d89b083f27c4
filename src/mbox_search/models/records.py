"""Byte-range records built once at load time.

A record never holds decoded text: every field points into the single
immutable byte sequence owned by the storage that created it.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime

from mbox_search.exceptions import RecordValidationError

DEFAULT_CONTENT_TYPE = "text/plain"
DEFAULT_TRANSFER_ENCODING = "quoted-printable"


@dataclass(frozen=True)
class ByteRange:
    """Half-open ``[start, end)`` range of byte offsets."""

    start: int
    end: int

    def __len__(self) -> int:
        return max(0, self.end - self.start)

    def contains(self, other: ByteRange) -> bool:
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: ByteRange) -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class BodyPart:
    """One body of a message and how it is encoded."""

    content_type: str
    transfer_encoding: str
    content: ByteRange

    @property
    def is_html(self) -> bool:
        return "text/html" in self.content_type


@dataclass(frozen=True)
class MessageRecord:
    """A validated message, as byte ranges into the archive."""

    full: ByteRange
    subject: ByteRange
    sender: ByteRange
    date: datetime
    bodies: tuple[BodyPart, ...] = ()

    def first_body(self, html: bool) -> BodyPart | None:
        """Return the first body of the requested class, in record order."""

        for body in self.bodies:
            if body.is_html == html:
                return body
        return None


@dataclass
class RecordValidator:
    """Accumulates the fields of a message while its tokens are parsed."""

    full: ByteRange | None = None
    subject: ByteRange | None = None
    sender: ByteRange | None = None
    date: datetime | None = None
    bodies: list[BodyPart] = field(default_factory=list)

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("full", "subject", "sender", "date")
            if getattr(self, name) is None
        ]

    def finalize(self) -> MessageRecord:
        """Build the record.

        Raises:
            RecordValidationError: If full, subject, sender or date is unset.
        """

        missing = self.missing_fields()
        if missing:
            raise RecordValidationError(f"Message draft is missing {', '.join(missing)}")

        return MessageRecord(
            full=self.full,  # type: ignore[arg-type]
            subject=self.subject,  # type: ignore[arg-type]
            sender=self.sender,  # type: ignore[arg-type]
            date=self.date,  # type: ignore[arg-type]
            bodies=tuple(self.bodies),
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), default=str)
