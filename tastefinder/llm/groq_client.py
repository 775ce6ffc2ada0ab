from __future__ import annotations

import logging
from typing import Any, Sequence

import groq
from groq import Groq

from ..errors import CompletionFailedError, ConfigurationError
from .config import LLMConfig
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def build_messages(conversation: Sequence[dict[str, str]]) -> list[dict[str, str]]:
    """Prepend the fixed system instruction to the conversation turns."""
    return [{"role": "system", "content": SYSTEM_PROMPT}, *conversation]


def _client(config: LLMConfig) -> Groq:
    kwargs: dict[str, Any] = {"api_key": config.api_key, "max_retries": 0}
    if config.timeout is not None:
        kwargs["timeout"] = config.timeout
    return Groq(**kwargs)


def complete(conversation: Sequence[dict[str, str]], config: LLMConfig) -> str:
    """
    Send the conversation to the Groq chat endpoint and return the text of
    the first completion, unmodified.

    Raises ConfigurationError when no API key is configured and
    CompletionFailedError for any provider-side failure. Nothing is retried.
    """
    if not config.api_key:
        raise ConfigurationError("Groq API key is not configured")

    if not conversation:
        raise ValueError("conversation must contain at least one message")

    messages = build_messages(conversation)
    logger.info("Requesting completion for %d message(s) from %s", len(conversation), config.model)

    try:
        response = _client(config).chat.completions.create(
            model=config.model,
            messages=messages,
            temperature=config.temperature,
        )
    except groq.APIStatusError as exc:
        logger.warning("Groq returned HTTP %s", exc.status_code, exc_info=True)
        raise CompletionFailedError(
            "Error communicating with the completion API",
            details=exc.message,
            upstream_status=exc.status_code,
        ) from exc
    except groq.APIError as exc:
        logger.warning("Groq request failed", exc_info=True)
        raise CompletionFailedError(
            "Error communicating with the completion API",
            details=exc.message or "Unknown error",
        ) from exc

    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise CompletionFailedError("Completion API returned no choices") from exc

    if content is None:
        raise CompletionFailedError("Completion API returned an empty message")

    return content
