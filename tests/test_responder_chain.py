"""Tests for the ordered backend fallback."""
import asyncio

import pytest

from clippy.assistant import EMPTY_INPUT_PROMPT, HistoryStore, ResponderChain
from clippy.assistant.responder_chain import STORAGE_UNAVAILABLE
from clippy.llm import (
    DecodeError,
    LocalRulesResponder,
    Message,
    Role,
    StatusError,
    TransportError,
    local_reply,
)
from clippy.storage import ConversationLog
from clippy.utils import drain_background_tasks

from conftest import GatedResponder, RecordingLog, ScriptedResponder


def make_chain(*responders, limit=10, log=None):
    return ResponderChain(list(responders), history=HistoryStore(limit=limit, log=log), log=log)


class TestFallbackOrder:
    """Tests for backend priority and fallback."""

    @pytest.mark.asyncio
    async def test_primary_answers(self):
        giga = ScriptedResponder("GigaChat", 100, reply="from giga")
        openai = ScriptedResponder("OpenAI", 50, reply="from openai")
        chain = make_chain(openai, giga, LocalRulesResponder())

        reply = await chain.respond("hello")

        assert reply.text == "from giga"
        assert reply.backend == "GigaChat"
        assert openai.calls == []
        assert chain.current_backend == "GigaChat"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        TransportError("GigaChat", "timeout"),
        StatusError("GigaChat", 503),
        DecodeError("GigaChat", "empty reply"),
        RuntimeError("unexpected"),
    ])
    async def test_secondary_after_primary_failure(self, error):
        giga = ScriptedResponder("GigaChat", 100, error=error)
        openai = ScriptedResponder("OpenAI", 50, reply="from openai")
        chain = make_chain(giga, openai, LocalRulesResponder())

        reply = await chain.respond("hello")

        assert reply.backend == "OpenAI"
        assert len(giga.calls) == 1

    @pytest.mark.asyncio
    async def test_local_when_all_remote_fail(self):
        giga = ScriptedResponder("GigaChat", 100, error=TransportError("GigaChat", "down"))
        openai = ScriptedResponder("OpenAI", 50, error=StatusError("OpenAI", 401))
        chain = make_chain(giga, openai, LocalRulesResponder())

        reply = await chain.respond("привет")

        assert reply.backend == "Local"
        assert reply.text == local_reply("привет")

    @pytest.mark.asyncio
    async def test_unconfigured_backends_are_never_invoked(self):
        giga = ScriptedResponder("GigaChat", 100, reply="x", configured=False)
        openai = ScriptedResponder("OpenAI", 50, reply="y", configured=False)
        chain = make_chain(giga, openai, LocalRulesResponder())

        reply = await chain.respond("пока")

        assert reply.backend == "Local"
        assert giga.calls == []
        assert openai.calls == []

    @pytest.mark.asyncio
    async def test_local_fallback_without_any_responder(self):
        chain = make_chain()
        reply = await chain.respond("помоги")
        assert reply.backend == "Local"
        assert reply.text == local_reply("помоги")


class TestTurnBookkeeping:
    """Tests for history updates around a turn."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    async def test_empty_input_returns_prompt(self, text):
        giga = ScriptedResponder("GigaChat", 100, reply="x")
        chain = make_chain(giga)

        reply = await chain.respond(text, generation=3)

        assert reply.text == EMPTY_INPUT_PROMPT
        assert reply.backend == "none"
        assert reply.generation == 3
        assert len(chain.history) == 0
        assert giga.calls == []

    @pytest.mark.asyncio
    async def test_history_gets_user_then_assistant(self):
        chain = make_chain(ScriptedResponder("GigaChat", 100, reply="hi there"))

        await chain.respond("hello")

        assert chain.history_pairs() == [("user", "hello"), ("assistant", "hi there")]

    @pytest.mark.asyncio
    async def test_backend_sees_history_without_current_text(self):
        giga = ScriptedResponder("GigaChat", 100, reply="ok")
        chain = make_chain(giga)

        await chain.respond("first")
        await chain.respond("second")

        history, text = giga.calls[1]
        assert text == "second"
        assert history == (Message(Role.USER, "first"), Message(Role.ASSISTANT, "ok"))

    @pytest.mark.asyncio
    async def test_history_bound_respected(self):
        chain = make_chain(ScriptedResponder("GigaChat", 100, reply="ok"), limit=4)

        for i in range(5):
            await chain.respond(f"message {i}")

        assert len(chain.history) == 4
        assert chain.history.snapshot()[0] == Message(Role.USER, "message 3")

    @pytest.mark.asyncio
    async def test_generation_is_echoed(self):
        chain = make_chain(LocalRulesResponder())
        reply = await chain.respond("привет", generation=7)
        assert reply.generation == 7

    @pytest.mark.asyncio
    async def test_turn_interrupted_by_clear_is_not_recorded(self):
        gated = GatedResponder()
        chain = make_chain(gated)

        task = asyncio.create_task(chain.respond("hello"))
        await gated.started.wait()
        chain.clear()
        gated.release.set()
        reply = await task

        assert reply.text == "late reply"
        assert len(chain.history) == 0


class TestPersistence:
    """Tests for the fire-and-forget durable log."""

    @pytest.mark.asyncio
    async def test_both_messages_persisted_with_backend(self):
        log = RecordingLog()
        chain = make_chain(ScriptedResponder("GigaChat", 100, reply="hi"), log=log)

        await chain.respond("hello")
        await drain_background_tasks()

        assert log.rows == [("user", "hello", "GigaChat"), ("assistant", "hi", "GigaChat")]

    @pytest.mark.asyncio
    async def test_clear_right_after_turn_leaves_no_half_turn(self, tmp_path):
        """The stored turn and a following clear never leave a lone row behind."""
        log = ConversationLog(tmp_path / "clippy.db")
        await log.connect()
        try:
            chain = make_chain(ScriptedResponder("GigaChat", 100, reply="hi"), log=log)

            await chain.respond("hello")
            chain.clear()
            await drain_background_tasks()

            assert await log.session_messages() == []
        finally:
            await log.disconnect()

    @pytest.mark.asyncio
    async def test_log_failure_does_not_break_turn(self, caplog):
        chain = make_chain(ScriptedResponder("GigaChat", 100, reply="hi"), log=RecordingLog(fail=True))

        reply = await chain.respond("hello")
        await drain_background_tasks()

        assert reply.text == "hi"
        assert len(chain.history) == 2
        assert "Failed to store messages" in caplog.text

    @pytest.mark.asyncio
    async def test_stats_without_log(self):
        chain = make_chain(LocalRulesResponder())
        assert await chain.stats() == STORAGE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_stats_error_becomes_message(self):
        chain = make_chain(LocalRulesResponder(), log=RecordingLog(fail=True))
        text = await chain.stats()
        assert "database is locked" in text

    @pytest.mark.asyncio
    async def test_close_closes_every_backend(self):
        giga = ScriptedResponder("GigaChat", 100, reply="x")
        openai = ScriptedResponder("OpenAI", 50, reply="y")
        chain = make_chain(giga, openai)

        await chain.close()

        assert giga.closed and openai.closed
