"""Storage capability consumed by the mailbox service."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from mbox_search.models import Message


class MailStorage(Protocol):
    """Read access to the messages of one archive.

    Ids are 0-based positions, stable for the storage's lifetime.
    """

    def get_email(self, email_id: int) -> Message:
        """Resolve one message.

        Raises:
            EmailNotFoundError: If the id is outside the archive.
            DecodeError: If a header cannot be decoded.
        """
        ...

    def count_emails(self) -> int:
        ...

    def emails(self) -> Iterator[Message]:
        """Lazily resolve every message in id order, skipping undecodable ones."""
        ...
