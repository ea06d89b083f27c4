"""Message storage.

Storages own the archive bytes and resolve message ids into decoded
messages on demand.
"""

from .base import MailStorage
from .mbox_file import MboxFile

__all__ = ["MailStorage", "MboxFile"]
