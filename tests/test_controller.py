"""Tests for the interaction state machine."""
from queue import Queue

import pytest

from clippy.assistant import ChainReply
from clippy.desktop.events import ReplyReady, StatsReady, TaskFailed, WidgetUpdate
from clippy.desktop.state import (
    ANIMATION_STEP,
    GREETING,
    HISTORY_CLEARED,
    THINKING,
    WIDGET_UNAVAILABLE,
    InteractionController,
    Phase,
)
from clippy.llm import Role

from conftest import FakeWorker


class FakeTTS:
    async def speak(self, text):
        pass


class FakeWeather:
    async def format_weather_info(self, city):
        return f"weather in {city}"


class FakeCurrency:
    async def format_rates_info(self, codes):
        return ",".join(codes)


@pytest.fixture
def controller(local_chain, fake_worker):
    return InteractionController(local_chain, fake_worker)


class TestConversation:
    """Tests for submit / reply / clear."""

    def test_empty_submit_is_ignored(self, controller, fake_worker):
        assert not controller.submit("   ")
        assert controller.state.phase is Phase.IDLE
        assert fake_worker.submitted == []

    def test_submit_moves_to_awaiting(self, controller, fake_worker):
        assert controller.submit("  привет ")

        assert controller.state.phase is Phase.AWAITING_RESPONSE
        assert controller.transcript[-1].role is Role.USER
        assert controller.transcript[-1].text == "привет"
        assert fake_worker.submitted == ["respond"]
        assert controller.bubble_text() == THINKING

    def test_submit_while_awaiting_is_ignored(self, controller, fake_worker):
        controller.submit("first")

        assert not controller.submit("second")
        assert fake_worker.submitted == ["respond"]
        assert [e.text for e in controller.transcript] == ["first"]

    def test_reply_returns_to_idle(self, controller):
        controller.submit("привет")

        assert controller.on_reply(ChainReply("Привет!", "Local", 0))

        assert controller.state.phase is Phase.IDLE
        assert controller.state.pending_backend_label == "Local"
        assert controller.bubble_text() == "Привет!"

    def test_reply_is_spoken(self, local_chain, fake_worker):
        controller = InteractionController(local_chain, fake_worker, tts=FakeTTS())
        controller.submit("привет")
        controller.on_reply(ChainReply("Привет!", "Local", 0))
        assert fake_worker.submitted == ["respond", "tts"]

    def test_stale_reply_after_clear_is_dropped(self, controller, fake_worker):
        controller.submit("привет")
        controller.clear()

        assert not controller.on_reply(ChainReply("late", "GigaChat", 0))

        assert controller.state.generation == 1
        assert controller.state.phase is Phase.IDLE
        assert [e.text for e in controller.transcript] == [HISTORY_CLEARED]
        assert "clear-history" in fake_worker.submitted

    def test_new_turn_after_clear_uses_new_generation(self, controller):
        controller.clear()
        controller.submit("привет")
        assert controller.on_reply(ChainReply("ok", "Local", 1))

    def test_worker_down_keeps_idle(self, local_chain):
        controller = InteractionController(local_chain, FakeWorker(running=False))
        assert not controller.submit("привет")
        assert controller.state.phase is Phase.IDLE

    def test_bubble_text_defaults_to_greeting(self, controller):
        assert controller.bubble_text() == GREETING


class TestGreeting:
    """Tests for the delayed greeting."""

    def test_greets_once_after_delay(self, controller):
        assert not controller.maybe_greet(1.0)
        assert controller.maybe_greet(3.0)
        assert not controller.maybe_greet(10.0)
        assert [e.text for e in controller.transcript] == [GREETING]


class TestPanel:
    """Tests for panel visibility and animation."""

    def test_show_resets_progress_and_requests_widgets(self, local_chain, fake_worker):
        controller = InteractionController(
            local_chain, fake_worker, weather=FakeWeather(), currency=FakeCurrency(),
        )
        assert controller.show_panel()
        assert controller.state.panel_visible
        assert controller.state.animation_progress == 0.0
        assert fake_worker.submitted == ["weather", "currency"]

    def test_tick_advances_until_full(self, controller):
        controller.show_panel()

        assert controller.tick() == pytest.approx(ANIMATION_STEP)
        for _ in range(20):
            controller.tick()

        assert controller.opacity() == 1.0
        assert controller.scale() == pytest.approx(1.0)

    def test_tick_does_nothing_when_hidden(self, controller):
        assert controller.tick() == 0.0

    def test_scale_eases_in(self, controller):
        controller.show_panel()
        assert controller.scale() == pytest.approx(0.8)
        controller.tick()
        assert controller.scale() == pytest.approx(0.8 + 0.2 * ANIMATION_STEP)

    def test_toggle_resets_progress(self, controller):
        controller.show_panel()
        controller.tick()
        controller.tick()

        assert controller.toggle_panel() is False
        assert controller.state.animation_progress == 0.0
        assert controller.toggle_panel() is True
        assert controller.state.animation_progress == 0.0

    def test_show_when_visible_is_noop(self, controller):
        controller.show_panel()
        controller.tick()
        assert not controller.show_panel()
        assert controller.state.animation_progress == pytest.approx(ANIMATION_STEP)

    def test_escape_hides_and_completes_animation(self, controller):
        controller.show_panel()
        controller.tick()

        assert controller.escape()

        assert not controller.state.panel_visible
        assert controller.state.animation_progress == 1.0

    def test_escape_when_hidden_does_nothing(self, controller):
        assert not controller.escape()
        assert controller.state.animation_progress == 0.0


class TestDrain:
    """Tests for event processing."""

    def test_drain_processes_every_event(self, controller):
        controller.submit("привет")
        channel = Queue()
        channel.put(WidgetUpdate("weather", "☀️"))
        channel.put(WidgetUpdate("currency", "USD 90"))
        channel.put(ReplyReady(ChainReply("Привет!", "Local", 0)))
        channel.put(StatsReady("📊 Статистика:"))

        assert controller.drain(channel) == 4
        assert channel.empty()

        assert controller.widgets.weather == "☀️"
        assert controller.widgets.currency == "USD 90"
        assert controller.state.phase is Phase.IDLE
        assert controller.transcript[-1].text == "📊 Статистика:"
        assert controller.state.panel_visible

    def test_drain_empty_channel(self, controller):
        assert controller.drain(Queue()) == 0

    def test_failed_respond_unblocks_input(self, controller):
        controller.submit("привет")
        controller.handle(TaskFailed("respond", "loop closed"))
        assert controller.state.phase is Phase.IDLE

    def test_failed_widget_shows_placeholder(self, controller):
        controller.handle(WidgetUpdate("weather", "☀️"))
        controller.handle(TaskFailed("weather", "timeout"))
        assert controller.widgets.weather == WIDGET_UNAVAILABLE

    def test_drain_defaults_to_worker_queue(self, controller, fake_worker):
        fake_worker.events.put(WidgetUpdate("currency", "EUR 100"))
        assert controller.drain() == 1
        assert controller.widgets.currency == "EUR 100"

    def test_message_count_follows_history(self, controller):
        assert controller.message_count() == 0
