"""Mailbox service orchestrating indexing and querying."""

from .mailbox_service import MailboxService

__all__ = ["MailboxService"]
