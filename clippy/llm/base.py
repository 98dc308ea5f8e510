"""
Base module for responder backends.

This file defines the INTERFACE that every backend must implement.
The responder chain only talks to BaseResponder, so GigaChat, OpenAI
and the local rules can be swapped or reordered without touching
the rest of the code.

Errors raised by a backend are grouped into a small taxonomy:
- TransportError: the server could not be reached (timeout, DNS, reset)
- StatusError: the server answered with a non-success status code
- DecodeError: the payload did not have the expected shape
- ConfigurationError: the backend was invoked without its credentials

All of them are recoverable: the chain logs them and moves on.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Who wrote a message."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"  # only used when building request payloads


@dataclass(frozen=True)
class Message:
    """
    Represents one message in a conversation.

    Messages are immutable once created.

    Attributes:
        role: Role.USER or Role.ASSISTANT
        content: The message text
    """
    role: Role
    content: str

    def to_payload(self) -> dict:
        """Format expected by chat-completions APIs."""
        return {"role": self.role.value, "content": self.content}


class BackendError(Exception):
    """Base class for recoverable backend failures."""

    def __init__(self, backend: str, reason: str):
        super().__init__(f"{backend}: {reason}")
        self.backend = backend
        self.reason = reason


class TransportError(BackendError):
    """Network-level failure (timeout, connection refused, ...)."""


class StatusError(BackendError):
    """The server answered with a non-success HTTP status."""

    def __init__(self, backend: str, status_code: int, body: str = ""):
        reason = f"HTTP {status_code}"
        if body:
            reason = f"{reason} - {body[:200]}"
        super().__init__(backend, reason)
        self.status_code = status_code


class DecodeError(BackendError):
    """The response payload was malformed or had an unexpected shape."""


class ConfigurationError(BackendError):
    """The backend is missing a credential or was explicitly disabled."""


class BaseResponder(ABC):
    """
    Abstract base class for all responder backends.

    Subclasses set `name` and `priority` and implement `respond()`.
    Higher priority backends are tried first.

    Example:
        class EchoResponder(BaseResponder):
            name = "Echo"
            priority = 5

            async def respond(self, history, text):
                return text
    """

    name: str = "base"
    priority: int = 0

    @property
    def is_configured(self) -> bool:
        """
        Whether the backend may be attempted at all.

        Unconfigured backends are skipped by the chain without a call.
        """
        return True

    @abstractmethod
    async def respond(self, history: tuple[Message, ...], text: str) -> str:
        """
        Produce a reply for `text` given the previous conversation.

        Args:
            history: Snapshot of the conversation so far (oldest first).
                     It never contains `text` itself.
            text: The new user message

        Returns:
            The reply text

        Raises:
            BackendError: on any recoverable failure
        """

    async def close(self) -> None:
        """Release network resources. Nothing to do by default."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} priority={self.priority}>"
