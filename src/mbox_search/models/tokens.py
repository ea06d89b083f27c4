"""Tokens emitted by the mbox lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    """Token kind enumeration."""

    START_EMAIL = "start_email"
    SUBJECT = "subject"
    FROM = "from"
    DATE = "date"
    BODY_START = "body_start"
    CONTENT_TYPE = "content_type"
    CONTENT_TRANSFER_ENCODING = "content_transfer_encoding"
    END = "end"
    CONTINUATION = "continuation"
    IGNORE = "ignore"


@dataclass(frozen=True)
class Token:
    """A lexer token.

    Span tokens (start_email, subject, from, body_start, end) carry a byte
    offset into the source. Value tokens (date, content_type,
    content_transfer_encoding) carry the raw header value. An end token
    produced by a multipart delimiter line has ``boundary`` set.
    """

    kind: TokenKind
    offset: int | None = None
    value: str | None = None
    boundary: bool = False

    @classmethod
    def start_email(cls, offset: int) -> Token:
        return cls(TokenKind.START_EMAIL, offset=offset)

    @classmethod
    def subject(cls, offset: int) -> Token:
        return cls(TokenKind.SUBJECT, offset=offset)

    @classmethod
    def from_(cls, offset: int) -> Token:
        return cls(TokenKind.FROM, offset=offset)

    @classmethod
    def date(cls, value: str) -> Token:
        return cls(TokenKind.DATE, value=value)

    @classmethod
    def body_start(cls, offset: int) -> Token:
        return cls(TokenKind.BODY_START, offset=offset)

    @classmethod
    def content_type(cls, value: str) -> Token:
        return cls(TokenKind.CONTENT_TYPE, value=value)

    @classmethod
    def content_transfer_encoding(cls, value: str) -> Token:
        return cls(TokenKind.CONTENT_TRANSFER_ENCODING, value=value)

    @classmethod
    def end(cls, offset: int, boundary: bool = False) -> Token:
        return cls(TokenKind.END, offset=offset, boundary=boundary)

    @classmethod
    def continuation(cls) -> Token:
        return cls(TokenKind.CONTINUATION)

    @classmethod
    def ignore(cls) -> Token:
        return cls(TokenKind.IGNORE)
