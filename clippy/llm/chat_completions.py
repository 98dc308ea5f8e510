"""
Responders speaking the chat-completions protocol.

GigaChat and OpenAI both expose POST /chat/completions with the same
message list format, so they share one httpx-based implementation and
only differ in endpoint, defaults and a few payload fields.

Request:  {"model": ..., "messages": [{"role", "content"}, ...], ...}
Response: {"choices": [{"message": {"role": "assistant", "content": ...}}]}
"""

import logging
from typing import Optional

import httpx

from .base import (
    BaseResponder,
    ConfigurationError,
    DecodeError,
    Message,
    Role,
    StatusError,
    TransportError,
)

logger = logging.getLogger(__name__)


class ChatCompletionsResponder(BaseResponder):
    """
    Generic chat-completions client.

    Attributes:
        api_key: Bearer token ("" means not configured)
        base_url: API root, "/chat/completions" is appended
        model: Model name sent in the payload
        temperature: Sampling temperature (clamped to 0.0 - 1.0)
        max_tokens: Maximum tokens in the reply (at least 1)
        system_prompt: Prepended as a system message when not empty
    """

    name = "chat-completions"
    priority = 50
    default_base_url = ""
    default_model = ""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 200,
        system_prompt: str = "",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or ""
        self.model = model or self.default_model
        self.temperature = min(max(temperature, 0.0), 1.0)
        self.max_tokens = max(max_tokens, 1)
        self.system_prompt = system_prompt
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        # A session is kept open to reuse connections between turns
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and self.api_key != "not-configured"

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _format_messages(self, history: tuple[Message, ...], text: str) -> list[dict]:
        messages = []
        if self.system_prompt:
            messages.append(Message(Role.SYSTEM, self.system_prompt).to_payload())
        messages.extend(m.to_payload() for m in history)
        messages.append(Message(Role.USER, text).to_payload())
        return messages

    def build_payload(self, history: tuple[Message, ...], text: str) -> dict:
        return {
            "model": self.model,
            "messages": self._format_messages(history, text),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def respond(self, history: tuple[Message, ...], text: str) -> str:
        if not self.is_configured:
            raise ConfigurationError(self.name, "API key is not set")

        logger.debug(f"📤 Sending request to {self.name} ({self.model}), {len(history)} messages of context")
        try:
            response = await self._client.post(
                self.endpoint,
                headers=self._headers(),
                json=self.build_payload(history, text),
            )
        except httpx.TimeoutException as e:
            raise TransportError(self.name, f"timeout: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(self.name, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise StatusError(self.name, response.status_code, response.text)

        return self._extract_reply(response)

    def _extract_reply(self, response: httpx.Response) -> str:
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise DecodeError(self.name, f"unexpected payload: {e!r}") from e

        if not isinstance(content, str) or not content.strip():
            raise DecodeError(self.name, "empty reply")
        return content.strip()

    async def close(self) -> None:
        """Properly close the HTTP connection."""
        await self._client.aclose()


class GigaChatResponder(ChatCompletionsResponder):
    """Primary remote backend (Sber GigaChat)."""

    name = "GigaChat"
    priority = 100
    default_base_url = "https://gigachat.devices.sberbank.ru/api/v1"
    default_model = "GigaChat:latest"

    def build_payload(self, history: tuple[Message, ...], text: str) -> dict:
        payload = super().build_payload(history, text)
        payload.update({"top_p": 0.9, "n": 1})
        return payload


class OpenAIResponder(ChatCompletionsResponder):
    """
    Secondary remote backend.

    Only attempted when explicitly enabled, even if a key is present.
    """

    name = "OpenAI"
    priority = 50
    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-3.5-turbo"

    def __init__(self, api_key: str, enabled: bool = False, **kwargs):
        super().__init__(api_key, **kwargs)
        self.enabled = enabled

    @property
    def is_configured(self) -> bool:
        return self.enabled and super().is_configured
