"""Durable conversation storage."""

from .sqlite_log import ConversationLog

__all__ = ["ConversationLog"]
