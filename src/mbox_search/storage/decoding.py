"""Header and body decoding for raw message byte ranges."""

from __future__ import annotations

import base64
import binascii
import re
from email.errors import HeaderParseError
from email.header import decode_header

from mbox_search.exceptions import DecodeError

# RFC 2047 caps an encoded word at 75 characters; longer ones are left as-is.
MAX_ENCODED_WORD_LENGTH = 75

_ENCODED_WORD = re.compile(r"=\?[^?\s]+\?[bBqQ]\?[^?\s]*\?=")


def _decode_encoded_word(word: str) -> str:
    try:
        chunks = decode_header(word)
    except HeaderParseError as exc:
        raise DecodeError(f"Invalid encoded word {word!r}: {exc}") from exc

    decoded = []
    for chunk, charset in chunks:
        if isinstance(chunk, str):
            decoded.append(chunk)
            continue
        # RFC 2231 language suffix, e.g. "utf-8*en".
        charset = (charset or "ascii").split("*", 1)[0]
        try:
            decoded.append(chunk.decode(charset))
        except (LookupError, UnicodeDecodeError) as exc:
            raise DecodeError(f"Cannot decode encoded word {word!r}: {exc}") from exc
    return "".join(decoded)


def decode_header_value(raw: bytes | memoryview) -> str:
    """Decode a raw header value, RFC 2047 encoded words included.

    Whitespace separating two adjacent encoded words is dropped, and line
    breaks left over from header folding are removed.

    Raises:
        DecodeError: If the value is not UTF-8 or an encoded word is invalid.
    """

    try:
        text = bytes(raw).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Header is not valid UTF-8: {exc}") from exc

    parts: list[str] = []
    last_end = 0
    previous_was_word = False
    for match in _ENCODED_WORD.finditer(text):
        between = text[last_end : match.start()]
        word = match.group(0)
        if len(word) > MAX_ENCODED_WORD_LENGTH:
            parts.append(between)
            parts.append(word)
            previous_was_word = False
        else:
            if not (previous_was_word and not between.strip()):
                parts.append(between)
            parts.append(_decode_encoded_word(word))
            previous_was_word = True
        last_end = match.end()
    parts.append(text[last_end:])

    return "".join(parts).replace("\r", "").replace("\n", "").strip()


def decode_body(raw: bytes | memoryview, transfer_encoding: str) -> str:
    """Decode a body according to its transfer encoding and validate it as UTF-8.

    Base64 bodies are base64-decoded; every other encoding is decoded as
    quoted-printable, leaving malformed escapes untouched.

    Raises:
        DecodeError: If the bytes cannot be decoded or are not UTF-8.
    """

    try:
        if transfer_encoding.strip().lower() == "base64":
            data = base64.b64decode(bytes(raw))
        else:
            data = binascii.a2b_qp(raw)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Cannot decode {transfer_encoding} body: {exc}") from exc

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Body is not valid UTF-8: {exc}") from exc
