"""
Local rule-based responder.

Works without any network access. It is the last backend of the chain
and never fails: when nothing matches it returns a fixed message saying
that local capabilities are limited.
"""

from .base import BaseResponder, Message


# Categories are checked in this order, first match wins.
KEYWORD_RULES: tuple[tuple[str, tuple[str, ...], str], ...] = (
    (
        "greeting",
        ("привет", "здравствуй"),
        "Привет! Как дела? Чем я могу тебе помочь?",
    ),
    (
        "farewell",
        ("пока", "до свидания"),
        "До свидания! Удачи тебе!",
    ),
    (
        "help",
        ("помощь", "помоги"),
        "Я могу помочь с:\n"
        "• Информацией о погоде\n"
        "• Курсами валют\n"
        "• Ответами на вопросы\n"
        "• Общением и консультациями",
    ),
    (
        "time",
        ("время", "который час"),
        "Пожалуйста, посмотрите время в системе.",
    ),
)

DEFAULT_REPLY = (
    "Интересный вопрос! Для более полного ответа рекомендую подключить "
    "GigaChat API. Могу ли я чем-то ещё помочь?"
)


def classify(text: str) -> str:
    """Return the rule category for `text` ("default" if none matches)."""
    lowered = text.lower()
    for category, keywords, _ in KEYWORD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return "default"


def local_reply(text: str) -> str:
    """
    Deterministic reply for `text`.

    Matching is a case-insensitive substring search, so "ПРИВЕТ" and
    "привет!" land in the same category.
    """
    category = classify(text)
    for name, _, reply in KEYWORD_RULES:
        if name == category:
            return reply
    return DEFAULT_REPLY


class LocalRulesResponder(BaseResponder):
    """Terminal backend wrapping `local_reply`."""

    name = "Local"
    priority = 0

    async def respond(self, history: tuple[Message, ...], text: str) -> str:
        return local_reply(text)
