"""Test doubles for the HTTP transport, the LLM client and the event sink."""

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import httpx

from a2a_desk.services.stream_events import StreamChunk


class FakeTransport(httpx.AsyncBaseTransport):
    """Transport that answers every request through a handler.

    Requests are recorded with their body already read so tests can
    inspect headers and JSON payloads.
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self._handler = handler
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        self.requests.append(request)
        return self._handler(request)


class StepClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def text_delta(text: str) -> SimpleNamespace:
    """Raw ``content_block_delta`` event carrying one text fragment."""
    return SimpleNamespace(
        type="content_block_delta",
        index=0,
        delta=SimpleNamespace(type="text_delta", text=text),
    )


class FakeStream:
    """Async stream of raw events.

    Items that are exceptions are raised instead of yielded. When a clock
    and delays are given, the clock advances by ``delays[i]`` before item
    ``i`` is delivered.
    """

    def __init__(
        self,
        items: list[Any],
        clock: StepClock | None = None,
        delays: list[float] | None = None,
    ):
        self._items = list(items)
        self._clock = clock
        self._delays = delays or []
        self._index = 0
        self.delivered = 0
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> Any:
        if self._index >= len(self._items):
            raise StopAsyncIteration
        if self._clock is not None and self._index < len(self._delays):
            self._clock.advance(self._delays[self._index])
        item = self._items[self._index]
        self._index += 1
        if isinstance(item, BaseException):
            raise item
        self.delivered += 1
        return item

    async def close(self) -> None:
        self.closed = True


class _FakeMessages:
    def __init__(self, owner: "FakeLLMClient"):
        self._owner = owner

    async def create(self, **kwargs: Any) -> Any:
        self._owner.calls.append(kwargs)
        if self._owner.error is not None:
            raise self._owner.error
        return self._owner.result


class FakeLLMClient:
    """Stands in for AsyncAnthropic; ``messages.create`` returns ``result``."""

    def __init__(self, result: Any = None, error: BaseException | None = None):
        self.result = result
        self.error = error
        self.calls: list[dict[str, Any]] = []
        self.messages = _FakeMessages(self)

    def factory(self, api_key: str, base_url: str) -> "FakeLLMClient":
        self.api_key = api_key
        self.base_url = base_url
        return self


class RecordingSink:
    """Event sink that keeps every emitted chunk in order."""

    def __init__(self):
        self.events: list[StreamChunk] = []

    async def emit(self, chunk: StreamChunk) -> None:
        self.events.append(chunk)
