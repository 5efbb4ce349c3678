"""Upstream completion client construction.

The relay talks to any endpoint that speaks the Anthropic Messages API
(DeepSeek exposes one). Callers pass the credential per request, so a
client is built per call rather than held globally.
"""

import logging
from typing import Callable

import anthropic
from anthropic import AsyncAnthropic

from a2a_desk.errors.domain import ClientError

logger = logging.getLogger(__name__)

# (api_key, base_url) -> client
ClientFactory = Callable[[str, str], AsyncAnthropic]

_ROLES = ("user", "assistant")


def create_llm_client(api_key: str, base_url: str) -> AsyncAnthropic:
    """Build an AsyncAnthropic client bound to ``api_key`` and ``base_url``.

    Raises:
        ClientError: If the SDK rejects the arguments.
    """
    try:
        return AsyncAnthropic(api_key=api_key, base_url=base_url)
    except (anthropic.AnthropicError, TypeError, ValueError) as e:
        logger.error("Failed to create AI client: %s", e)
        raise ClientError(f"Failed to create AI client: {e}") from e


def to_anthropic_messages(
    messages: list[tuple[str, str]],
) -> tuple[str | None, list[dict[str, str]]]:
    """Split role-tagged messages into a system prompt and a message list.

    ``system`` entries are joined with blank lines into the system prompt.
    Roles other than ``user``/``assistant``/``system`` are sent as ``user``.

    Args:
        messages: ``(role, content)`` pairs in conversation order.

    Returns:
        ``(system, messages)``. ``system`` is None when no system entry
        was given.
    """
    system_parts: list[str] = []
    converted: list[dict[str, str]] = []
    for role, content in messages:
        if role == "system":
            system_parts.append(content)
            continue
        converted.append({"role": role if role in _ROLES else "user", "content": content})
    system = "\n\n".join(system_parts) if system_parts else None
    return system, converted
