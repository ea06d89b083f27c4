"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable, Union

import pytest
import structlog

THREE_MESSAGES = """\
From alice@example.com Mon Aug  4 11:56:07 2025
From: Alice <alice@example.com>
Subject: Quarterly budget review
Date: Mon, 4 Aug 2025 11:56:07 +0800

Please review the quarterly budget spreadsheet before Friday.
Thanks, Alice

From bob@example.com Tue Aug  5 09:00:00 2025
From: =?utf-8?q?Bob_M=C3=BCller?= <bob@example.com>
Subject: =?utf-8?b?Q2Fmw6kgbWVldGluZw==?=
Date: Tue, 5 Aug 2025 09:00:00 +0000
MIME-Version: 1.0
Content-Type: multipart/alternative; boundary="sep42"

--sep42
Content-Type: text/plain; charset=utf-8
Content-Transfer-Encoding: quoted-printable

Let's meet at the caf=C3=A9 tomorrow.
--sep42
Content-Type: text/html; charset=utf-8
Content-Transfer-Encoding: quoted-printable

<p>Let's meet at the caf=C3=A9 tomorrow.</p>
--sep42--

From carol@example.com Wed Aug  6 10:30:00 2025
From: carol@example.com
Subject: Server outage
 postmortem
Date: Wed, 6 Aug 2025 10:30:00 -0400

The database server went down at 3am.
"""


def mbox_message(
    sender: str,
    subject: str,
    body: Union[str, None],
    date: str = "Mon, 4 Aug 2025 11:56:07 +0000",
) -> str:
    """Render one simple mbox message; ``body=None`` leaves out the body."""

    lines = [
        f"From {sender} Mon Aug  4 11:56:07 2025",
        f"From: {sender}",
        f"Subject: {subject}",
        f"Date: {date}",
    ]
    if body is not None:
        lines += ["", body, ""]
    return "\n".join(lines) + "\n"


@pytest.fixture
def mock_settings():
    """Provide settings wired to the deterministic embedder."""
    from mbox_search.config import Settings

    return Settings(
        embedding_backend="deterministic",
        worker_count=2,
        queue_capacity=4,
        index_batch_size=3,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def write_mbox(tmp_path: Path) -> Callable[[Union[str, bytes]], Path]:
    """Write mbox content to a temporary file and return its path."""

    counter = {"n": 0}

    def _write(content: Union[str, bytes]) -> Path:
        counter["n"] += 1
        path = tmp_path / f"archive-{counter['n']}.mbox"
        data = content.encode("utf-8") if isinstance(content, str) else content
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def three_message_mbox(write_mbox) -> Path:
    """An archive with a plain message, a multipart message and a folded subject."""
    return write_mbox(THREE_MESSAGES)


@pytest.fixture
def topic_mbox(write_mbox) -> Path:
    """Eight messages on distinct topics plus one without a body."""
    messages = [
        mbox_message("alice@example.com", "Budget", "quarterly budget spreadsheet numbers"),
        mbox_message("bob@example.com", "Lunch", "pizza lunch on friday"),
        mbox_message("carol@example.com", "Outage", "database server outage postmortem"),
        mbox_message("dave@example.com", "Hiring", "interview candidates for backend role"),
        mbox_message("erin@example.com", "Travel", "flight tickets hotel booking"),
        mbox_message("frank@example.com", "No body", None),
        mbox_message("grace@example.com", "Release", "version release notes changelog"),
        mbox_message("heidi@example.com", "Garden", "tomatoes watering schedule"),
        mbox_message("ivan@example.com", "Music", "concert guitar rehearsal"),
    ]
    return write_mbox("".join(messages))


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_message() -> Callable[..., str]:
    """Provide the simple mbox message renderer."""
    return mbox_message
