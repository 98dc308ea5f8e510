"""
Bounded conversation history.

The in-memory window is what the remote backends see as context. It is
authoritative for the conversation; the durable log is only an audit
trail, so its failures are logged and never reach the caller.
"""

import logging
import threading
from collections import deque
from typing import Optional

from clippy.llm.base import Message
from clippy.utils.tasks import fire_and_forget

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Append-only window of the most recent messages.

    Attributes:
        limit: Maximum number of messages kept (oldest evicted first)
        log: Optional durable ConversationLog mirrored on clear()
    """

    def __init__(self, limit: int = 10, log=None):
        if limit < 1:
            raise ValueError(f"History limit must be >= 1, got {limit}")
        self.limit = limit
        self.log = log
        # deque(maxlen) evicts from the left in the same operation as the append
        self._messages: deque[Message] = deque(maxlen=limit)
        self._lock = threading.Lock()

    def push(self, message: Message) -> None:
        with self._lock:
            self._messages.append(message)

    def snapshot(self) -> tuple[Message, ...]:
        """Independent, read-only copy of the window (oldest first)."""
        with self._lock:
            return tuple(self._messages)

    def clear(self) -> None:
        """Empty the window and ask the durable log to drop this session."""
        with self._lock:
            self._messages.clear()
        logger.info("🗑️  Conversation history cleared")

        if self.log is not None:
            fire_and_forget(self._clear_log(), name="history-clear")

    async def _clear_log(self) -> None:
        try:
            removed = await self.log.clear_current_session()
            logger.debug(f"Removed {removed} stored messages of the current session")
        except Exception as e:
            logger.error(f"Failed to clear stored history: {e}")

    def last(self) -> Optional[Message]:
        with self._lock:
            return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
