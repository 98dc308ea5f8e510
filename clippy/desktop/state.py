"""
Interaction state machine of the overlay.

The controller owns everything the UI shows except pixels: the visible
transcript, panel visibility and its fade-in, whether a reply is
pending, and the widget texts. It is only touched from the UI thread;
work goes to the BackgroundWorker and comes back as events.

States:
    IDLE              -> submit(text)        -> AWAITING_RESPONSE
    AWAITING_RESPONSE -> ReplyReady (fresh)  -> IDLE
    any               -> clear()             -> IDLE (generation + 1)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from queue import Empty, Queue
from typing import Optional

from clippy.assistant import ChainReply, ResponderChain
from clippy.llm.base import Role

from .events import ReplyReady, StatsReady, TaskFailed, WidgetUpdate
from .worker import BackgroundWorker

logger = logging.getLogger(__name__)

ANIMATION_STEP = 0.15
GREETING = "Привет! 👋 Нажми на зелёную кнопку, чтобы поговорить."
THINKING = "⏳ Думаю..."
HISTORY_CLEARED = "🗑️ История очищена"
WIDGET_UNAVAILABLE = "—"


class Phase(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


@dataclass
class UIState:
    panel_visible: bool = False
    animation_progress: float = 0.0
    pending_backend_label: str = "none"
    phase: Phase = Phase.IDLE
    generation: int = 0


@dataclass(frozen=True)
class TranscriptEntry:
    role: Role
    text: str


@dataclass
class WidgetTexts:
    weather: str = WIDGET_UNAVAILABLE
    currency: str = WIDGET_UNAVAILABLE
    extra: dict[str, str] = field(default_factory=dict)


class InteractionController:
    """
    UI-thread state machine.

    Args:
        chain: ResponderChain answering the turns (runs on the worker)
        worker: BackgroundWorker executing every coroutine
        tts: Optional TTS provider, speech is fire-and-forget
        weather: Optional WeatherService for the widgets strip
        currency: Optional CurrencyService for the widgets strip
        city: City shown in the weather widget
        currencies: Currency codes shown in the currency widget
        greeting_delay: Seconds after start before the greeting appears
    """

    def __init__(
        self,
        chain: ResponderChain,
        worker: BackgroundWorker,
        tts=None,
        weather=None,
        currency=None,
        city: str = "Москва",
        currencies: tuple[str, ...] = ("USD", "EUR", "CNY"),
        greeting_delay: float = 3.0,
    ):
        self.chain = chain
        self.worker = worker
        self.tts = tts
        self.weather = weather
        self.currency = currency
        self.city = city
        self.currencies = tuple(currencies)
        self.greeting_delay = greeting_delay

        self.state = UIState()
        self.transcript: list[TranscriptEntry] = []
        self.widgets = WidgetTexts()
        self._greeted = False

    # ==================== Conversation ====================

    @property
    def awaiting(self) -> bool:
        return self.state.phase is Phase.AWAITING_RESPONSE

    def submit(self, text: str) -> bool:
        """Send one user message. Returns False when it was ignored."""
        text = text.strip()
        if not text:
            return False
        if self.awaiting:
            logger.debug("Still waiting for a reply, input ignored")
            return False

        self.transcript.append(TranscriptEntry(Role.USER, text))
        self.state.phase = Phase.AWAITING_RESPONSE
        generation = self.state.generation

        future = self.worker.submit(
            self.chain.respond(text, generation),
            ReplyReady,
            name="respond",
        )
        if future is None:
            logger.error("Could not dispatch the message, worker is down")
            self.state.phase = Phase.IDLE
            return False

        logger.info(f"👤 User: {text}")
        return True

    def on_reply(self, reply: ChainReply) -> bool:
        """Apply a reply from the chain. Stale replies are dropped."""
        if reply.generation != self.state.generation:
            logger.info(
                f"Dropping stale reply from {reply.backend} "
                f"(generation {reply.generation}, current {self.state.generation})"
            )
            return False

        self.transcript.append(TranscriptEntry(Role.ASSISTANT, reply.text))
        self.state.pending_backend_label = reply.backend
        self.state.phase = Phase.IDLE
        logger.info(f"🤖 {reply.backend}: {reply.text[:80]}")
        self.speak(reply.text)
        return True

    def clear(self) -> None:
        """Start over: empty transcript, forget history, ignore in-flight replies."""
        self.state.generation += 1
        self.state.phase = Phase.IDLE
        self.transcript = [TranscriptEntry(Role.ASSISTANT, HISTORY_CLEARED)]
        self.worker.submit(self._clear_chain(), name="clear-history")

    async def _clear_chain(self) -> None:
        # Runs on the worker loop so the log cleanup can be scheduled there
        self.chain.clear()

    def request_stats(self) -> None:
        self.worker.submit(self.chain.stats(), StatsReady, name="stats")

    def speak(self, text: str) -> None:
        if self.tts is None:
            return
        self.worker.submit(self._speak(text), name="tts")

    async def _speak(self, text: str) -> None:
        try:
            await self.tts.speak(text)
        except Exception as e:
            logger.warning(f"🔇 Speech failed: {e}")

    def maybe_greet(self, elapsed: float) -> bool:
        """Show (and say) the greeting once, `greeting_delay` seconds after start."""
        if self._greeted or elapsed < self.greeting_delay:
            return False
        self._greeted = True
        self.transcript.append(TranscriptEntry(Role.ASSISTANT, GREETING))
        self.speak(GREETING)
        return True

    def bubble_text(self) -> str:
        if self.awaiting:
            return THINKING
        if self.transcript:
            return self.transcript[-1].text
        return GREETING

    # ==================== Panel ====================

    def show_panel(self) -> bool:
        if self.state.panel_visible:
            return False
        self.state.panel_visible = True
        self.state.animation_progress = 0.0
        self.request_widgets()
        return True

    def hide_panel(self) -> bool:
        if not self.state.panel_visible:
            return False
        self.state.panel_visible = False
        self.state.animation_progress = 0.0
        return True

    def toggle_panel(self) -> bool:
        """Returns the new visibility."""
        if self.state.panel_visible:
            self.hide_panel()
        else:
            self.show_panel()
        return self.state.panel_visible

    def escape(self) -> bool:
        if not self.state.panel_visible:
            return False
        self.state.panel_visible = False
        self.state.animation_progress = 1.0
        return True

    def tick(self) -> float:
        """Advance the fade-in by one frame."""
        if self.state.panel_visible and self.state.animation_progress < 1.0:
            self.state.animation_progress = min(1.0, self.state.animation_progress + ANIMATION_STEP)
        return self.state.animation_progress

    def opacity(self) -> float:
        return self.state.animation_progress

    def scale(self) -> float:
        return 0.8 + 0.2 * self.state.animation_progress

    # ==================== Widgets ====================

    def request_widgets(self) -> None:
        if self.weather is not None:
            self.worker.submit(
                self.weather.format_weather_info(self.city),
                lambda text: WidgetUpdate("weather", text),
                name="weather",
            )
        if self.currency is not None:
            self.worker.submit(
                self.currency.format_rates_info(self.currencies),
                lambda text: WidgetUpdate("currency", text),
                name="currency",
            )

    def message_count(self) -> int:
        return len(self.chain.history)

    # ==================== Events ====================

    def handle(self, event) -> None:
        if isinstance(event, ReplyReady):
            self.on_reply(event.reply)
        elif isinstance(event, WidgetUpdate):
            if event.name == "weather":
                self.widgets.weather = event.text
            elif event.name == "currency":
                self.widgets.currency = event.text
            else:
                self.widgets.extra[event.name] = event.text
        elif isinstance(event, StatsReady):
            self.transcript.append(TranscriptEntry(Role.ASSISTANT, event.text))
            self.show_panel()
        elif isinstance(event, TaskFailed):
            self._on_failure(event)
        else:
            logger.warning(f"Unknown event: {event!r}")

    def _on_failure(self, event: TaskFailed) -> None:
        if event.name == "respond" and self.awaiting:
            # The chain never raises, but a dead loop must not freeze the UI
            self.state.phase = Phase.IDLE
        elif event.name in ("weather", "currency"):
            setattr(self.widgets, event.name, WIDGET_UNAVAILABLE)

    def drain(self, channel: Optional[Queue] = None) -> int:
        """Handle every queued event without blocking. Returns how many."""
        channel = channel if channel is not None else self.worker.events
        handled = 0
        while True:
            try:
                event = channel.get_nowait()
            except Empty:
                return handled
            self.handle(event)
            handled += 1
