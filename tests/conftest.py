"""Pytest configuration and shared fixtures."""
import json
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest

from lexa.errors import UpstreamError
from lexa.llm.base import GatewayProvider
from lexa.llm.models import LLMResponse, PromptMessage, RawStream


def sse_record(content: str) -> str:
    """Encode one delta record the way the gateway streams it."""
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n\n"


def sse_payload(*tokens: str, done: bool = True) -> bytes:
    """Encode a full event-stream body for the given tokens."""
    body = "".join(sse_record(token) for token in tokens)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


class FakeGateway(GatewayProvider):
    """Gateway provider returning canned answers and recording prompts."""

    def __init__(
        self,
        answer: str = "Here is the analysis.",
        chunks: list[bytes] | None = None,
        error: UpstreamError | None = None,
    ):
        self.answer = answer
        self.chunks = chunks if chunks is not None else [sse_payload("Here is", " the analysis.")]
        self.error = error
        self.prompts: list[list[PromptMessage]] = []
        self.closed_streams = 0
        self.closed = False

    async def chat_completion(
        self,
        messages: list[PromptMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.prompts.append(list(messages))
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.answer, model=model or "fake-model")

    async def open_stream(
        self,
        messages: list[PromptMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> RawStream:
        self.prompts.append(list(messages))
        if self.error is not None:
            raise self.error

        async def _chunks() -> AsyncIterator[bytes]:
            for chunk in self.chunks:
                yield chunk

        async def _close() -> None:
            self.closed_streams += 1

        return RawStream(_chunks(), _close)

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def mock_client(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
    """httpx client whose requests are answered by handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def fake_gateway():
    """Return a gateway that streams "Here is the analysis."."""
    return FakeGateway()


@pytest.fixture
def sleep_recorder():
    """Return a sleep function recording requested delays."""
    return SleepRecorder()


@pytest.fixture
def hi_there_payload():
    """Return the two-record stream that accumulates to "Hi there"."""
    return sse_payload("Hi", " there", done=False)
