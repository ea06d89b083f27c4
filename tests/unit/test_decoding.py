"""Unit tests for header and body decoding."""

import pytest

from mbox_search.exceptions import DecodeError
from mbox_search.storage.decoding import decode_body, decode_header_value


class TestDecodeHeaderValue:
    """Test suite for encoded-word aware header decoding."""

    def test_plain_value_strips_line_break(self) -> None:
        assert decode_header_value(b"Hello world\n") == "Hello world"

    def test_folded_value(self) -> None:
        assert decode_header_value(b"Server outage\n postmortem\n") == "Server outage postmortem"

    def test_q_encoded_word(self) -> None:
        value = b"=?utf-8?q?Bob_M=C3=BCller?= <bob@example.com>\n"
        assert decode_header_value(value) == "Bob Müller <bob@example.com>"

    def test_b_encoded_word(self) -> None:
        assert decode_header_value(b"=?utf-8?b?Q2Fmw6kgbWVldGluZw==?=") == "Café meeting"

    def test_mixed_charsets_join_adjacent_words(self) -> None:
        value = b"=?iso-8859-1?q?Caf=E9?= =?utf-8?q?_cr=C3=A8me?= done"
        assert decode_header_value(value) == "Café crème done"

    def test_overlong_encoded_word_left_undecoded(self) -> None:
        word = b"=?utf-8?q?" + b"a" * 80 + b"?="
        assert decode_header_value(b"x " + word) == "x " + word.decode()

    def test_unknown_charset(self) -> None:
        with pytest.raises(DecodeError):
            decode_header_value(b"=?no-such-charset?q?abc?=")

    def test_invalid_utf8(self) -> None:
        with pytest.raises(DecodeError):
            decode_header_value(b"\xff\xfe")


class TestDecodeBody:
    """Test suite for body decoding."""

    def test_quoted_printable(self) -> None:
        raw = b"caf=C3=A9 soft=\nbreak\n"
        assert decode_body(raw, "quoted-printable") == "café softbreak\n"

    def test_malformed_escape_tolerated(self) -> None:
        assert decode_body(b"50% =ZZ off\n", "quoted-printable") == "50% =ZZ off\n"

    def test_other_encodings_use_quoted_printable(self) -> None:
        assert decode_body(b"plain text\n", "7bit") == "plain text\n"

    def test_base64(self) -> None:
        assert decode_body(b"\naGVsbG8gd29ybGQ=\n", "base64") == "hello world"

    def test_memoryview_input(self) -> None:
        assert decode_body(memoryview(b"abc"), "quoted-printable") == "abc"

    def test_invalid_utf8(self) -> None:
        with pytest.raises(DecodeError):
            decode_body(b"\xff\xfe\n", "quoted-printable")
