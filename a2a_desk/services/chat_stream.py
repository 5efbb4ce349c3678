"""Chat completion relay.

ChatStreamRelay drives one streaming completion to a terminal outcome and
emits ordered StreamChunk events to a sink:

    Validating -> Connecting -> Streaming -> Completed | TimedOut | Failed

Validation and connection failures raise without emitting anything. Once
streaming starts, exactly one ``streaming_started`` event comes first and
exactly one terminal event (``is_complete=True``) comes last. The wall-clock
ceiling is checked once per received chunk, so a stalled upstream is only
noticed when its next chunk arrives.

ChatService.complete is the one-shot, non-streaming variant.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

import anthropic
import httpx
from pydantic import BaseModel

from a2a_desk.config import LLMConfig
from a2a_desk.errors.domain import (
    InvalidInputError,
    StreamTimeoutError,
    TransportBodyError,
    TransportRequestError,
)
from a2a_desk.services.llm_client import ClientFactory, create_llm_client, to_anthropic_messages
from a2a_desk.services.stream_events import StreamChunk, StreamEventSink

logger = logging.getLogger(__name__)

STREAM_COMPLETED_MESSAGE = "Streaming completed successfully"


class ChatMessage(BaseModel):
    """One role-tagged conversation entry."""

    role: str
    content: str


class ChatStreamParams(BaseModel):
    """Input for one streaming call."""

    messages: list[ChatMessage]
    api_key: str
    max_tokens: int | None = None
    temperature: float | None = None


class ChatCompletionParams(BaseModel):
    """Input for one non-streaming call."""

    system_prompt: str = ""
    user_prompt: str = ""
    api_key: str


class StreamState(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass
class StreamSession:
    """Per-call streaming state."""

    started_at: float
    fragments: list[str] = field(default_factory=list)
    chunk_count: int = 0
    state: StreamState = StreamState.IN_PROGRESS

    @property
    def text(self) -> str:
        return "".join(self.fragments)


def _event_text(event: Any) -> str | None:
    """Return the text fragment carried by a raw stream event, if any."""
    if getattr(event, "type", None) != "content_block_delta":
        return None
    delta = getattr(event, "delta", None)
    if getattr(delta, "type", None) != "text_delta":
        return None
    return getattr(delta, "text", None) or None


def _event_usage(event: Any) -> Any:
    event_type = getattr(event, "type", None)
    if event_type == "message_start":
        return getattr(getattr(event, "message", None), "usage", None)
    if event_type == "message_delta":
        return getattr(event, "usage", None)
    return None


class ChatStreamRelay:
    """Relays one upstream token stream to a StreamEventSink.

    Args:
        sink: Receiver of stream events.
        config: Endpoint, model and limits. Defaults to LLMConfig().
        client_factory: Builds the upstream client from a credential.
        clock: Monotonic seconds source used for the timeout check.
    """

    def __init__(
        self,
        sink: StreamEventSink,
        config: LLMConfig | None = None,
        client_factory: ClientFactory = create_llm_client,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sink = sink
        self._config = config or LLMConfig()
        self._client_factory = client_factory
        self._clock = clock

    @property
    def timeout_seconds(self) -> float:
        return self._config.stream_timeout_seconds

    def _timeout_message(self) -> str:
        minutes = self.timeout_seconds / 60
        if minutes == int(minutes):
            return f"Streaming timeout after {int(minutes)} minutes"
        return f"Streaming timeout after {self.timeout_seconds:g} seconds"

    async def stream(self, params: ChatStreamParams) -> str:
        """Run one streaming completion.

        Returns:
            The accumulated text. Fragments were already delivered to the
            sink as content events.

        Raises:
            InvalidInputError: Blank credential or empty message list.
            ClientError: Upstream client could not be built.
            TransportRequestError: Opening the stream or reading a chunk failed.
            StreamTimeoutError: A chunk arrived after the ceiling elapsed.
        """
        if not params.api_key.strip():
            raise InvalidInputError("API key cannot be empty")
        if not params.messages:
            raise InvalidInputError("Messages array cannot be empty")

        logger.info("Starting streaming chat completion with model %s", self._config.model)
        client = self._client_factory(params.api_key, self._config.base_url)

        system, messages = to_anthropic_messages(
            [(m.role, m.content) for m in params.messages]
        )
        request: dict[str, Any] = {
            "model": self._config.model,
            "messages": messages,
            "max_tokens": params.max_tokens or self._config.max_tokens,
            "temperature": (
                params.temperature
                if params.temperature is not None
                else self._config.temperature
            ),
            "stream": True,
        }
        if system is not None:
            request["system"] = system

        try:
            upstream = await client.messages.create(**request)
        except (anthropic.APIError, httpx.HTTPError) as e:
            logger.error("Request failed: %s", e)
            raise TransportRequestError(f"Request failed: {e}", detail=str(e)) from e

        session = StreamSession(started_at=self._clock())
        try:
            return await self._relay(upstream, session)
        finally:
            await upstream.close()

    async def _relay(self, upstream: Any, session: StreamSession) -> str:
        await self._sink.emit(StreamChunk.started())
        events = upstream.__aiter__()

        while True:
            error: Exception | None = None
            event = None
            try:
                event = await events.__anext__()
            except StopAsyncIteration:
                break
            except Exception as e:
                error = e

            if self._clock() - session.started_at > self.timeout_seconds:
                session.state = StreamState.TIMED_OUT
                message = self._timeout_message()
                logger.warning("%s (%d chunks received)", message, session.chunk_count)
                await self._sink.emit(StreamChunk.failed(message))
                raise StreamTimeoutError(message)

            if error is not None:
                session.state = StreamState.FAILED
                logger.error("Error reading stream chunk: %s", error)
                await self._sink.emit(StreamChunk.failed(f"Stream error: {error}"))
                raise TransportRequestError(
                    f"Stream error: {error}", detail=str(error)
                ) from error

            session.chunk_count += 1
            text = _event_text(event)
            if text:
                await self._sink.emit(StreamChunk.fragment(text))
                session.fragments.append(text)

            usage = _event_usage(event)
            if usage is not None:
                logger.info("Usage: %s", usage)

        session.state = StreamState.COMPLETED
        logger.info("Stream completed after %d chunks", session.chunk_count)
        await self._sink.emit(StreamChunk.completed())
        return session.text


class ChatService:
    """One-shot chat completion against the configured endpoint."""

    def __init__(
        self,
        config: LLMConfig | None = None,
        client_factory: ClientFactory = create_llm_client,
    ) -> None:
        self._config = config or LLMConfig()
        self._client_factory = client_factory

    async def complete(self, params: ChatCompletionParams) -> str:
        """Send one system/user prompt pair and return the reply text.

        Raises:
            InvalidInputError: Blank credential, or both prompts blank.
            ClientError: Upstream client could not be built.
            TransportRequestError: The request failed.
            TransportBodyError: The reply carried no text.
        """
        if not params.api_key.strip():
            raise InvalidInputError("API key cannot be empty")
        if not params.system_prompt.strip() and not params.user_prompt.strip():
            raise InvalidInputError(
                "At least one of system_prompt or user_prompt must be provided"
            )

        client = self._client_factory(params.api_key, self._config.base_url)
        request: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.completion_temperature,
            "messages": [{"role": "user", "content": params.user_prompt}],
        }
        if params.system_prompt.strip():
            request["system"] = params.system_prompt

        logger.info("Sending request to AI API with model: %s", self._config.model)
        try:
            response = await client.messages.create(**request)
        except (anthropic.APIError, httpx.HTTPError) as e:
            logger.error("Request failed: %s", e)
            raise TransportRequestError(f"Request failed: {e}", detail=str(e)) from e

        for block in response.content:
            if getattr(block, "type", None) == "text" and block.text:
                return block.text

        logger.warning("Unexpected response format: %s", response)
        raise TransportBodyError("Unexpected response format")
