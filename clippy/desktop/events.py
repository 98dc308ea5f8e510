"""Events sent from the background worker to the UI thread."""

from dataclasses import dataclass

from clippy.assistant import ChainReply


@dataclass(frozen=True)
class ReplyReady:
    reply: ChainReply


@dataclass(frozen=True)
class WidgetUpdate:
    name: str  # "weather" or "currency"
    text: str


@dataclass(frozen=True)
class StatsReady:
    text: str


@dataclass(frozen=True)
class TaskFailed:
    name: str
    error: str
