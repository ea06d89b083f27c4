"""Stack-based mbox parser.

Tokens are pushed onto an explicit stack and popped by end tokens. Each
pop closes one span: a body, a From or Subject header, or the whole
message. Messages are accumulated in a ``RecordValidator`` and only become
records once every required field was seen.

Two failure modes are kept apart. A message missing a required
field is logged and dropped while parsing continues. An end token that
finds nothing to close means the token stream itself is broken: in strict
mode that aborts the whole parse.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import structlog

from mbox_search.exceptions import RecordValidationError, StructuralParseError
from mbox_search.models import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_TRANSFER_ENCODING,
    BodyPart,
    ByteRange,
    MessageRecord,
    RecordValidator,
    Token,
    TokenKind,
)

logger = structlog.get_logger()

_PART_HEADERS = frozenset({TokenKind.CONTENT_TYPE, TokenKind.CONTENT_TRANSFER_ENCODING})


def parse_date(value: str | None) -> datetime | None:
    """Parse an RFC 2822 date into an aware UTC datetime, or None."""

    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, OverflowError, IndexError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class Parser:
    """Token stack machine producing message records in discovery order."""

    def __init__(self, strict: bool = True) -> None:
        self.strict = strict
        self.records: list[MessageRecord] = []
        self.stack: list[Token] = []
        self.validator = RecordValidator()

    def feed(self, token: Token) -> None:
        kind = token.kind

        if kind is TokenKind.START_EMAIL and self.stack:
            logger.error(
                "mbox_malformed_message_boundary",
                offset=token.offset,
                pending_tokens=[t.kind.value for t in self.stack],
            )
            self.stack.clear()
            self._discard_draft()
            self.stack.append(token)
        elif kind is TokenKind.END:
            self._close(token)
        elif kind is TokenKind.DATE:
            self.validator.date = parse_date(token.value)
        else:
            self.stack.append(token)

    def _close(self, end: Token) -> None:
        stack = self.stack

        # Part headers never followed by a body have nothing left to pair with.
        while stack and stack[-1].kind in _PART_HEADERS:
            orphan = stack.pop()
            logger.debug("mbox_orphan_part_header", kind=orphan.kind.value, value=orphan.value)

        if not stack:
            if self.strict:
                raise StructuralParseError(f"Unbalanced end token at offset {end.offset}")
            logger.warning("mbox_unbalanced_end_skipped", offset=end.offset)
            return

        top = stack[-1]
        if top.kind is TokenKind.START_EMAIL and end.boundary:
            # Multipart delimiter: the parts stay inside the open message.
            return

        stack.pop()
        span = ByteRange(top.offset, end.offset)  # type: ignore[arg-type]

        if top.kind is TokenKind.BODY_START:
            self.validator.bodies.append(self._body_part(span))
        elif top.kind is TokenKind.FROM:
            self.validator.sender = span
        elif top.kind is TokenKind.SUBJECT:
            self.validator.subject = span
        elif top.kind is TokenKind.START_EMAIL:
            self.validator.full = span
            self._finalize()
        else:
            raise StructuralParseError(
                f"End token at offset {end.offset} closes unexpected {top.kind.value} token"
            )

    def _body_part(self, content: ByteRange) -> BodyPart:
        stack = self.stack
        if (
            len(stack) >= 2
            and stack[-1].kind is TokenKind.CONTENT_TRANSFER_ENCODING
            and stack[-2].kind is TokenKind.CONTENT_TYPE
        ):
            transfer_encoding = stack.pop().value or DEFAULT_TRANSFER_ENCODING
            content_type = stack.pop().value or DEFAULT_CONTENT_TYPE
        else:
            transfer_encoding = DEFAULT_TRANSFER_ENCODING
            content_type = DEFAULT_CONTENT_TYPE
        return BodyPart(
            content_type=content_type,
            transfer_encoding=transfer_encoding,
            content=content,
        )

    def _finalize(self) -> None:
        validator, self.validator = self.validator, RecordValidator()
        try:
            record = validator.finalize()
        except RecordValidationError as exc:
            logger.warning("mbox_record_validation_failed", error=str(exc), draft=validator.to_json())
            return
        self.records.append(record)

    def _discard_draft(self) -> None:
        if self.validator != RecordValidator():
            logger.warning("mbox_draft_discarded", draft=self.validator.to_json())
        self.validator = RecordValidator()


def parse(tokens: Iterable[Token], strict: bool = True) -> list[MessageRecord]:
    """Parse a token stream into message records.

    Args:
        tokens: Tokens as produced by the lexer.
        strict: Raise on an unbalanced end token instead of skipping it.

    Returns:
        Records in file order; a record's id is its index in this list.

    Raises:
        StructuralParseError: If the token stack is malformed.
    """

    parser = Parser(strict=strict)
    for token in tokens:
        parser.feed(token)
    logger.info("mbox_parsed", records=len(parser.records))
    return parser.records
