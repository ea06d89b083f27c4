"""Data models for mbox-search.

Tokens and byte-range records are plain dataclasses built in bulk at load
time; resolved messages are Pydantic models.
"""

from .message import Message, RankedMessage, SearchResult
from .records import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_TRANSFER_ENCODING,
    BodyPart,
    ByteRange,
    MessageRecord,
    RecordValidator,
)
from .tokens import Token, TokenKind

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_TRANSFER_ENCODING",
    "BodyPart",
    "ByteRange",
    "Message",
    "MessageRecord",
    "RankedMessage",
    "RecordValidator",
    "SearchResult",
    "Token",
    "TokenKind",
]
