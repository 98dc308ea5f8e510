"""
Responder chain - resolves one user turn into a reply.

Backends are tried in descending priority. The first one that answers
wins; a remote failure is logged and the next backend is tried. The
local rules backend is terminal and cannot fail, so respond() always
returns text and never raises.

Flow of one turn:
1. Empty input -> fixed prompt, nothing else happens
2. Snapshot history, try each configured backend in order
3. Push user message + reply to history, remember which backend answered
4. Persist both messages in the background (fire-and-forget)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from clippy.llm.base import BackendError, BaseResponder, Message, Role
from clippy.llm.local_rules import local_reply
from clippy.utils.tasks import fire_and_forget

from .history import HistoryStore

logger = logging.getLogger(__name__)

EMPTY_INPUT_PROMPT = "Чем могу помочь?"
STORAGE_UNAVAILABLE = "Хранилище недоступно"


@dataclass(frozen=True)
class ChainReply:
    """
    Terminal outcome of one turn, the only thing handed to the UI.

    Attributes:
        text: Reply text
        backend: Name of the backend that produced it ("none" for empty input)
        generation: Conversation generation the request was made under
    """
    text: str
    backend: str
    generation: int = 0


class ResponderChain:
    """
    Ordered fallback over responder backends with bounded history.

    Attributes:
        responders: Backends sorted by descending priority
        history: Bounded conversation window
        log: Optional durable ConversationLog
        current_backend: Name of the backend used for the last turn
    """

    def __init__(
        self,
        responders: Sequence[BaseResponder],
        history: Optional[HistoryStore] = None,
        log=None,
    ):
        self.responders = sorted(responders, key=lambda r: r.priority, reverse=True)
        self.history = history if history is not None else HistoryStore(log=log)
        self.log = log
        self.current_backend = "none"
        # Bumped by clear(); a turn that straddles a clear is not recorded
        self._epoch = 0
        # One full turn at a time
        self._lock = asyncio.Lock()

    async def respond(self, user_text: str, generation: int = 0) -> ChainReply:
        if not user_text.strip():
            self.current_backend = "none"
            return ChainReply(EMPTY_INPUT_PROMPT, "none", generation)

        async with self._lock:
            epoch = self._epoch
            reply, backend = await self._resolve(user_text)
            self.current_backend = backend

            if epoch != self._epoch:
                logger.info(f"History cleared while {backend} was answering, turn not recorded")
                return ChainReply(reply, backend, generation)

            self.history.push(Message(Role.USER, user_text))
            self.history.push(Message(Role.ASSISTANT, reply))
            logger.info(f"📡 Reply from {backend} ({len(reply)} chars)")

            if self.log is not None:
                fire_and_forget(
                    self._persist(user_text, reply, backend),
                    name="persist-turn",
                )
            return ChainReply(reply, backend, generation)

    async def _resolve(self, user_text: str) -> tuple[str, str]:
        context = self.history.snapshot()

        for responder in self.responders:
            if not responder.is_configured:
                logger.debug(f"Skipping {responder.name}: not configured")
                continue
            try:
                reply = await responder.respond(context, user_text)
                return reply, responder.name
            except BackendError as e:
                logger.warning(f"⚠️ {responder.name} failed: {e.reason}")
            except Exception:
                logger.exception(f"⚠️ {responder.name} raised an unexpected error")

        # Every backend failed or none is configured; local rules always answer
        logger.debug("📡 Using local rules")
        return local_reply(user_text), "Local"

    async def _persist(self, user_text: str, reply: str, backend: str) -> None:
        try:
            # one call so a clear can never land between the two rows
            await self.log.append_turn(user_text, reply, backend)
        except Exception as e:
            logger.error(f"Failed to store messages: {e}")

    def clear(self) -> None:
        """Forget the conversation (memory + current session in the log)."""
        self._epoch += 1
        self.history.clear()

    def history_pairs(self) -> list[tuple[str, str]]:
        return [(m.role.value, m.content) for m in self.history.snapshot()]

    async def stats(self) -> str:
        if self.log is None:
            return STORAGE_UNAVAILABLE
        try:
            return await self.log.stats()
        except Exception as e:
            logger.error(f"Failed to read storage stats: {e}")
            return f"Ошибка получения статистики: {e}"

    async def close(self) -> None:
        for responder in self.responders:
            try:
                await responder.close()
            except Exception as e:
                logger.warning(f"Error closing {responder.name}: {e}")
        if self.log is not None:
            try:
                await self.log.disconnect()
            except Exception as e:
                logger.warning(f"Error closing conversation log: {e}")
