# LLM Module - responder backends
from .base import (
    BackendError,
    BaseResponder,
    ConfigurationError,
    DecodeError,
    Message,
    Role,
    StatusError,
    TransportError,
)
from .chat_completions import ChatCompletionsResponder, GigaChatResponder, OpenAIResponder
from .local_rules import LocalRulesResponder, local_reply
from .factory import build_responders

__all__ = [
    "BackendError",
    "BaseResponder",
    "ConfigurationError",
    "DecodeError",
    "Message",
    "Role",
    "StatusError",
    "TransportError",
    "ChatCompletionsResponder",
    "GigaChatResponder",
    "OpenAIResponder",
    "LocalRulesResponder",
    "local_reply",
    "build_responders",
]
