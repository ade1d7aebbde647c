from abc import ABC, abstractmethod
from typing import Any

from .models import LLMResponse, PromptMessage, RawStream


class GatewayProvider(ABC):
    """Upstream model gateway used by the chat server.

    Hides which gateway serves the model and how its failures look.
    Every implementation raises UpstreamError subclasses, never SDK
    exceptions, so the server can map them without knowing the SDK.

        async with provider:
            answer = await provider.chat_completion(prompt)
    """

    @abstractmethod
    async def chat_completion(
        self,
        messages: list[PromptMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Request one complete answer for the prompt.

        Args:
            messages: Full prompt, system instructions first
            model: Model override (None uses the provider's default)
            temperature: Sampling temperature
            max_tokens: Generation cap

        Raises:
            UpstreamError: Gateway rejected or failed the request
        """

    @abstractmethod
    async def open_stream(
        self,
        messages: list[PromptMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> RawStream:
        """Open a streamed answer whose body is relayed without re-encoding.

        The gateway status is checked before this returns, so a refused
        request fails here and never mid-stream.

        Raises:
            UpstreamError: Gateway rejected or failed the request
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the gateway client."""

    async def __aenter__(self) -> "GatewayProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        # httpx may report a closed loop while tearing down at interpreter exit
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
