"""Shared factories and fakes for A2A Desk tests."""

from tests.helpers.factories import make_agent, make_provider
from tests.helpers.fakes import (
    FakeLLMClient,
    FakeStream,
    FakeTransport,
    RecordingSink,
    StepClock,
    text_delta,
)

__all__ = [
    "make_provider",
    "make_agent",
    "FakeTransport",
    "FakeStream",
    "FakeLLMClient",
    "RecordingSink",
    "StepClock",
    "text_delta",
]
