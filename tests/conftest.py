"""Pytest configuration and shared fixtures."""
import asyncio
from queue import Queue
from typing import Optional

import pytest

from clippy.assistant import HistoryStore, ResponderChain
from clippy.desktop.text_metrics import MonospaceMeasurer
from clippy.llm import BaseResponder, LocalRulesResponder


class ScriptedResponder(BaseResponder):
    """Backend returning a fixed reply or raising a fixed error, recording calls."""

    def __init__(
        self,
        name: str,
        priority: int,
        reply: Optional[str] = None,
        error: Optional[Exception] = None,
        configured: bool = True,
    ):
        self.name = name
        self.priority = priority
        self.reply = reply
        self.error = error
        self.configured = configured
        self.calls: list[tuple[tuple, str]] = []
        self.closed = False

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def respond(self, history, text):
        self.calls.append((history, text))
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self):
        self.closed = True


class GatedResponder(BaseResponder):
    """Backend that answers only once `release` is set."""

    name = "Gated"
    priority = 100

    def __init__(self, reply: str = "late reply"):
        self.reply = reply
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def respond(self, history, text):
        self.started.set()
        await self.release.wait()
        return self.reply


class FakeWorker:
    """Synchronous stand-in for BackgroundWorker: records, never runs."""

    def __init__(self, running: bool = True):
        self.events: Queue = Queue()
        self.submitted: list[str] = []
        self.running = running

    def submit(self, coro, on_result=None, name="task"):
        coro.close()
        if not self.running:
            return None
        self.submitted.append(name)
        return object()


class RecordingLog:
    """In-memory ConversationLog replacement, optionally failing."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.rows: list[tuple[str, str, str]] = []
        self.cleared = 0

    async def append(self, role, content, backend_label):
        if self.fail:
            raise OSError("disk full")
        self.rows.append((role, content, backend_label))

    async def append_turn(self, user_text, reply, backend_label):
        if self.fail:
            raise OSError("disk full")
        self.rows.extend([("user", user_text, backend_label), ("assistant", reply, backend_label)])

    async def clear_current_session(self):
        if self.fail:
            raise OSError("disk full")
        self.cleared += 1
        removed, self.rows = len(self.rows), []
        return removed

    async def stats(self):
        if self.fail:
            raise OSError("database is locked")
        return f"rows={len(self.rows)}"

    async def disconnect(self):
        pass


@pytest.fixture
def measurer():
    """7 px per character, 16 px lines."""
    return MonospaceMeasurer(char_width=7.0, line_height=16.0)


@pytest.fixture
def local_chain():
    """Chain with only the local rules backend."""
    return ResponderChain([LocalRulesResponder()], history=HistoryStore(limit=10))


@pytest.fixture
def fake_worker():
    return FakeWorker()
