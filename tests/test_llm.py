"""Unit tests for upstream gateway providers."""
import json

import httpx
import pytest
from conftest import sse_payload

from lexa.errors import UpstreamBillingError, UpstreamError, UpstreamRateLimitError
from lexa.llm import (
    GatewayProvider,
    OpenAICompatibleProvider,
    PromptMessage,
    RawStream,
    create_gateway_provider,
)

BASE_URL = "http://gateway.test/v1"

PROMPT = [
    PromptMessage(role="system", content="You are a legal assistant."),
    PromptMessage(role="user", content="What is IPC 420?"),
]

COMPLETION = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "created": 0,
    "model": "google/gemini-2.5-flash",
    "choices": [{
        "index": 0,
        "message": {"role": "assistant", "content": "It covers cheating."},
        "finish_reason": "stop",
    }],
    "usage": {"prompt_tokens": 10, "completion_tokens": 4, "total_tokens": 14},
}


def make_provider(handler) -> OpenAICompatibleProvider:
    return OpenAICompatibleProvider(
        api_key="test-key",
        base_url=BASE_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestGatewayProvider:
    """Tests for the GatewayProvider interface."""

    def test_is_abstract(self):
        with pytest.raises(TypeError):
            GatewayProvider()  # type: ignore


class TestCreateGatewayProvider:
    """Tests for the provider factory."""

    def test_gateway(self):
        provider = create_gateway_provider("gateway", api_key="k")
        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.model == "google/gemini-2.5-flash"

    def test_openai_requires_model(self):
        with pytest.raises(TypeError, match="model"):
            create_gateway_provider("openai", api_key="k")

    def test_missing_key(self):
        with pytest.raises(TypeError, match="api_key"):
            create_gateway_provider("gateway")

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_gateway_provider("carrier-pigeon", api_key="k")


class TestRawStream:
    """Tests for the raw pass-through stream."""

    @pytest.mark.asyncio
    async def test_iterates_and_closes_once(self):
        closes = []

        async def chunks():
            yield b"a"
            yield b"b"

        async def close():
            closes.append(True)

        stream = RawStream(chunks(), close)
        assert [chunk async for chunk in stream] == [b"a", b"b"]

        await stream.aclose()
        await stream.aclose()
        assert stream.closed
        assert closes == [True]


class TestOpenAICompatibleProvider:
    """Tests for the OpenAI-compatible gateway provider."""

    @pytest.mark.asyncio
    async def test_chat_completion(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=COMPLETION)

        async with make_provider(handler) as provider:
            response = await provider.chat_completion(PROMPT, temperature=0.7, max_tokens=4096)

        assert response.content == "It covers cheating."
        assert response.usage == {"prompt_tokens": 10, "completion_tokens": 4, "total_tokens": 14}
        assert seen["path"] == "/v1/chat/completions"
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["model"] == "google/gemini-2.5-flash"
        assert seen["body"]["max_tokens"] == 4096
        assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]

    @pytest.mark.asyncio
    async def test_open_stream_relays_raw_bytes(self):
        payload = b": upstream comment\n\n" + sse_payload("It covers", " cheating.")
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                content=payload,
                headers={"content-type": "text/event-stream"},
            )

        async with make_provider(handler) as provider:
            stream = await provider.open_stream(PROMPT)
            try:
                relayed = b"".join([chunk async for chunk in stream])
            finally:
                await stream.aclose()

        assert relayed == payload
        assert stream.closed
        assert seen["body"]["stream"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, expected", [
        (429, UpstreamRateLimitError),
        (402, UpstreamBillingError),
        (500, UpstreamError),
    ])
    @pytest.mark.parametrize("streaming", [False, True])
    async def test_errors_translated(self, status, expected, streaming):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(status, json={"error": {"message": "upstream detail"}})

        async with make_provider(handler) as provider:
            with pytest.raises(expected) as excinfo:
                if streaming:
                    await provider.open_stream(PROMPT)
                else:
                    await provider.chat_completion(PROMPT)

        assert type(excinfo.value) is expected
        assert excinfo.value.status_code == status
        assert "upstream detail" not in str(excinfo.value)
        assert len(calls) == 1
