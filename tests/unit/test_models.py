"""Unit tests for data models."""

from datetime import datetime, timezone

import pytest

from mbox_search.exceptions import RecordValidationError
from mbox_search.models import BodyPart, ByteRange, Message, RecordValidator

DATE = datetime(2025, 8, 4, 3, 56, 7, tzinfo=timezone.utc)


class TestByteRange:
    """Test suite for ByteRange."""

    def test_length(self) -> None:
        assert len(ByteRange(10, 25)) == 15

    def test_contains(self) -> None:
        outer = ByteRange(0, 100)
        assert outer.contains(ByteRange(10, 20))
        assert outer.contains(outer)
        assert not ByteRange(10, 20).contains(outer)

    def test_overlaps(self) -> None:
        assert ByteRange(0, 10).overlaps(ByteRange(5, 15))
        assert not ByteRange(0, 10).overlaps(ByteRange(10, 20))


class TestRecordValidator:
    """Test suite for RecordValidator."""

    def test_finalize(self) -> None:
        validator = RecordValidator(
            full=ByteRange(0, 100),
            subject=ByteRange(10, 20),
            sender=ByteRange(30, 40),
            date=DATE,
        )
        validator.bodies.append(BodyPart("text/html", "7bit", ByteRange(50, 90)))
        validator.bodies.append(BodyPart("text/plain", "7bit", ByteRange(90, 100)))

        record = validator.finalize()

        assert record.full == ByteRange(0, 100)
        assert record.first_body(html=False).content == ByteRange(90, 100)
        assert record.first_body(html=True).content == ByteRange(50, 90)

    def test_missing_fields(self) -> None:
        validator = RecordValidator(full=ByteRange(0, 100), subject=ByteRange(10, 20))

        assert validator.missing_fields() == ["sender", "date"]
        with pytest.raises(RecordValidationError):
            validator.finalize()

    def test_to_json(self) -> None:
        validator = RecordValidator(subject=ByteRange(10, 20))

        assert '"subject": {"start": 10, "end": 20}' in validator.to_json()


class TestMessage:
    """Test suite for Message model."""

    def test_embedding_text_prefers_plain(self) -> None:
        message = Message(id=0, sender="a", date=DATE, subject="s", body_text="t", body_html="h")
        assert message.embedding_text() == "t"

    def test_embedding_text_falls_back_to_html(self) -> None:
        message = Message(id=0, sender="a", date=DATE, subject="s", body_html="<p>h</p>")
        assert message.embedding_text() == "<p>h</p>"
        assert message.has_body

    def test_without_body(self) -> None:
        message = Message(id=0, sender="a", date=DATE, subject="s")
        assert not message.has_body
        assert message.embedding_text() is None

    def test_str(self) -> None:
        message = Message(id=3, sender="Alice <a@example.com>", date=DATE, subject="Hello")
        assert str(message) == "[3] 2025-08-04T03:56:07+00:00 | Alice <a@example.com> | Hello"

    def test_negative_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            Message(id=-1, sender="a", date=DATE, subject="s")
