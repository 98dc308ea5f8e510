"""Build the ordered list of responder backends from configuration."""

import logging

from .base import BaseResponder
from .chat_completions import GigaChatResponder, OpenAIResponder
from .local_rules import LocalRulesResponder

logger = logging.getLogger(__name__)


def build_responders(config) -> list[BaseResponder]:
    """
    Create every backend, highest priority first.

    Unconfigured remote backends are still created (so the chain can
    report them) but will be skipped without a network call.
    """
    giga_cfg = config.llm.gigachat
    openai_cfg = config.llm.openai

    responders: list[BaseResponder] = [
        GigaChatResponder(
            api_key=giga_cfg.api_key,
            model=giga_cfg.model,
            temperature=giga_cfg.temperature,
            max_tokens=giga_cfg.max_tokens,
            system_prompt=config.system_prompt,
            base_url=giga_cfg.base_url,
            timeout=giga_cfg.timeout,
        ),
        OpenAIResponder(
            api_key=openai_cfg.api_key,
            enabled=config.llm.use_openai,
            model=openai_cfg.model,
            temperature=openai_cfg.temperature,
            max_tokens=openai_cfg.max_tokens,
            system_prompt=config.system_prompt,
            base_url=openai_cfg.base_url,
            timeout=openai_cfg.timeout,
        ),
        LocalRulesResponder(),
    ]
    responders.sort(key=lambda r: r.priority, reverse=True)

    for responder in responders:
        state = "ready" if responder.is_configured else "not configured"
        logger.info(f"🧠 Backend {responder.name} (priority {responder.priority}): {state}")
    return responders
