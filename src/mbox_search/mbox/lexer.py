"""Streaming mbox lexer.

The lexer classifies the source line by line and tags every token with the
byte offset it refers to. It keeps two pieces of state between lines: the
active multipart boundary (reset whenever a new message starts) and the
pending token, i.e. the last token that was not a continuation. A pending
token is only written out once the next non-continuation line is seen,
because that line's offset is where single-span tokens end.

Offsets count raw bytes, line terminators included, so they can be used
directly against a memory map of the same file.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO

import structlog

from mbox_search.exceptions import FileAccessError
from mbox_search.models import Token, TokenKind

logger = structlog.get_logger()

START_EMAIL_PREFIX = b"From "
SUBJECT_PREFIX = b"Subject: "
FROM_PREFIX = b"From: "
DATE_PREFIX = b"Date: "
CONTENT_TRANSFER_ENCODING_PREFIX = b"Content-Transfer-Encoding: "
CONTENT_TYPE_PREFIX = b"Content-Type: "

_BOUNDARY_MARKER = b"boundary="
_BOUNDARY_VALUE = re.compile(rb'boundary="([^"]+)"')

# Tokens closed by the next line boundary: an end token follows them.
_SINGLE_SPAN = frozenset({TokenKind.FROM, TokenKind.SUBJECT, TokenKind.BODY_START})
_DROPPED = frozenset({TokenKind.IGNORE, TokenKind.CONTINUATION})


def _strip_line_ending(raw_line: bytes) -> bytes:
    if raw_line.endswith(b"\r\n"):
        return raw_line[:-2]
    if raw_line.endswith(b"\n"):
        return raw_line[:-1]
    return raw_line


def _header_value(line: bytes, prefix: bytes) -> str:
    return line[len(prefix) :].decode("utf-8", errors="replace").strip()


def _is_delimiter(line: bytes, boundary: bytes) -> bool:
    return line.startswith(boundary) or line.startswith(b"--" + boundary)


class Lexer:
    """Line-at-a-time tokenizer state machine."""

    def __init__(self) -> None:
        self.position = 0
        self.boundary: bytes | None = None
        self.pending = Token.ignore()

    def classify(self, line: bytes) -> Token:
        """Classify one line (without its terminator) at the current offset.

        Updates the active boundary as a side effect.
        """

        position = self.position

        if line.startswith(START_EMAIL_PREFIX):
            self.boundary = None
            return Token.start_email(position)
        if line.startswith(SUBJECT_PREFIX):
            return Token.subject(position + len(SUBJECT_PREFIX))
        if line.startswith(FROM_PREFIX):
            return Token.from_(position + len(FROM_PREFIX))
        if line.startswith(DATE_PREFIX):
            return Token.date(_header_value(line, DATE_PREFIX))
        if line.startswith(CONTENT_TRANSFER_ENCODING_PREFIX):
            return Token.content_transfer_encoding(
                _header_value(line, CONTENT_TRANSFER_ENCODING_PREFIX)
            )
        if line.startswith(CONTENT_TYPE_PREFIX):
            if _BOUNDARY_MARKER in line:
                match = _BOUNDARY_VALUE.search(line)
                if match:
                    self.boundary = match.group(1)
                return Token.ignore()
            return Token.content_type(_header_value(line, CONTENT_TYPE_PREFIX))
        if self.boundary is not None and _is_delimiter(line, self.boundary):
            return Token.end(position, boundary=True)

        previous = self.pending.kind
        if previous is TokenKind.CONTENT_TRANSFER_ENCODING and not line:
            return Token.body_start(position)
        if previous is TokenKind.BODY_START:
            return Token.continuation()
        if self.boundary is None and not line:
            return Token.body_start(position)
        if line.startswith((b" ", b"\t")):
            return Token.continuation()
        return Token.ignore()

    def feed(self, raw_line: bytes) -> list[Token]:
        """Consume one raw line and return the tokens it completes."""

        token = self.classify(_strip_line_ending(raw_line))
        emitted: list[Token] = []
        if token.kind is not TokenKind.CONTINUATION:
            emitted = self._close(self.pending, at_eof=False)
            self.pending = token
        self.position += len(raw_line)
        return emitted

    def finish(self) -> list[Token]:
        """Close the pending token and terminate the stream."""

        emitted = self._close(self.pending, at_eof=True)
        self.pending = Token.ignore()
        return emitted

    def _close(self, pending: Token, at_eof: bool) -> list[Token]:
        kind = pending.kind
        emitted: list[Token] = []

        if kind is TokenKind.START_EMAIL:
            if at_eof:
                # A "From " line with nothing after it.
                pass
            elif pending.offset:
                # Ends the previous message where this one starts.
                emitted = [Token.end(pending.offset), pending]
            else:
                emitted = [pending]
        elif kind in _DROPPED:
            pass
        elif kind in _SINGLE_SPAN:
            emitted = [pending, Token.end(self.position)]
        else:
            emitted = [pending]

        if at_eof:
            emitted.append(Token.end(self.position))
        return emitted


def tokenize(lines: Iterable[bytes]) -> Iterator[Token]:
    """Tokenize raw lines (terminators included) from a single source."""

    lexer = Lexer()
    count = 0
    for raw_line in lines:
        for token in lexer.feed(raw_line):
            count += 1
            yield token
    for token in lexer.finish():
        count += 1
        yield token
    logger.debug("mbox_lexing_finished", tokens=count, bytes_consumed=lexer.position)


def _tokenize_file(handle: BinaryIO, source: Path) -> Iterator[Token]:
    with handle:
        try:
            yield from tokenize(handle)
        except OSError as exc:
            raise FileAccessError(f"Error reading mbox file {source}: {exc}") from exc


def lex(source: str | Path) -> Iterator[Token]:
    """Lex an mbox file.

    The file is opened eagerly; tokens are produced lazily and the returned
    iterator can only be consumed once.

    Args:
        source: Path to the mbox file.

    Returns:
        Iterator over the file's tokens.

    Raises:
        FileAccessError: If the file cannot be opened or read.
    """

    path = Path(source)
    try:
        handle = path.open("rb")
    except OSError as exc:
        raise FileAccessError(f"Cannot open mbox file {path}: {exc}") from exc
    return _tokenize_file(handle, path)
