import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack
from typing import Any

from openai import APIError, APIStatusError, AsyncOpenAI, RateLimitError

from ...config import DEFAULT_GATEWAY_URL, DEFAULT_MODEL
from ...errors import UpstreamBillingError, UpstreamError, UpstreamRateLimitError
from ..base import GatewayProvider
from ..models import LLMResponse, PromptMessage, RawStream

logger = logging.getLogger(__name__)


def _translate_error(error: APIError) -> UpstreamError:
    """Map an OpenAI SDK error to an upstream failure class."""
    status = error.status_code if isinstance(error, APIStatusError) else None
    logger.error("AI gateway error: status=%s detail=%s", status, error.message)

    if isinstance(error, RateLimitError) or status == 429:
        return UpstreamRateLimitError("Upstream rate limit", status_code=429)
    if status == 402:
        return UpstreamBillingError("Upstream billing failure", status_code=402)
    return UpstreamError("Upstream request failed", status_code=status)


class OpenAICompatibleProvider(GatewayProvider):
    """Gateway provider for any OpenAI-compatible chat completions API.

    Hidden design decisions:
    - OpenAI SDK client initialization
    - Raw (non re-encoded) access to the streamed body
    - Error translation; SDK-level retries are disabled so the chat
      client's retry policy is the only one in effect
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str | None = DEFAULT_GATEWAY_URL,
        **client_kwargs: Any
    ):
        """Initialize the provider.

        Args:
            api_key: Gateway API key
            model: Default model to use
            base_url: Gateway base URL (None uses api.openai.com)
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        client_kwargs.setdefault("max_retries", 0)
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    def _request_params(
        self,
        messages: list[PromptMessage],
        model: str | None,
        temperature: float,
        max_tokens: int | None,
        **kwargs: Any
    ) -> dict[str, Any]:
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": [{"role": msg.role, "content": msg.content} for msg in messages],
            "temperature": temperature,
            **kwargs
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens
        return request_params

    async def chat_completion(
        self,
        messages: list[PromptMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a complete chat response through the gateway."""
        request_params = self._request_params(messages, model, temperature, max_tokens, **kwargs)

        try:
            completion = await self._client.chat.completions.create(**request_params)
        except APIError as e:
            raise _translate_error(e) from e

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        content = ""
        if completion.choices:
            content = completion.choices[0].message.content or ""

        return LLMResponse(
            content=content,
            model=completion.model,
            usage=usage
        )

    async def open_stream(
        self,
        messages: list[PromptMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> RawStream:
        """Open a streamed response and hand back its untouched body."""
        request_params = self._request_params(messages, model, temperature, max_tokens, **kwargs)
        request_params["stream"] = True

        stack = AsyncExitStack()
        try:
            response = await stack.enter_async_context(
                self._client.chat.completions.with_streaming_response.create(**request_params)
            )
        except APIError as e:
            await stack.aclose()
            raise _translate_error(e) from e
        except BaseException:
            await stack.aclose()
            raise

        return RawStream(self._relay(response), stack.aclose)

    async def _relay(self, response: Any) -> AsyncIterator[bytes]:
        """Internal generator passing body chunks through unchanged."""
        async for chunk in response.iter_bytes():
            yield chunk

    async def close(self) -> None:
        """Close the SDK client and its connection pool."""
        await self._client.close()
