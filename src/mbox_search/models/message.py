"""Resolved message model.

A ``Message`` is recomputed from its record on every access and never
cached by the storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field


class Message(BaseModel):
    """A decoded message."""

    id: int = Field(ge=0, description="Position of the message in the archive")
    sender: str = Field(description="Decoded From header")
    date: datetime = Field(description="Parsed Date header, in UTC")
    subject: str = Field(description="Decoded Subject header")
    body_text: Optional[str] = Field(default=None, description="First plain text body")
    body_html: Optional[str] = Field(default=None, description="First HTML body")

    @property
    def has_body(self) -> bool:
        return self.body_text is not None or self.body_html is not None

    def embedding_text(self) -> str | None:
        """Text used as embedding input: plain text, falling back to HTML."""

        if self.body_text is not None:
            return self.body_text
        return self.body_html

    def __str__(self) -> str:
        return f"[{self.id}] {self.date.isoformat()} | {self.sender} | {self.subject}"


@dataclass(frozen=True)
class SearchResult:
    """A hit returned by a vector index."""

    id: int
    score: float


class RankedMessage(NamedTuple):
    """A search hit hydrated from storage."""

    score: float
    message: Message
