from collections.abc import AsyncIterator, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field


class RawStream:
    """Upstream response body relayed byte-for-byte.

    Acts as an async iterator over the raw chunks the gateway sent, so
    the caller sees the exact wire format. Must be closed once consumed
    or abandoned.

    Usage:
        stream = await provider.open_stream(messages)
        try:
            async for chunk in stream:
                send(chunk)
        finally:
            await stream.aclose()
    """

    def __init__(
        self,
        chunks: AsyncIterator[bytes],
        close: Callable[[], Awaitable[None]] | None = None
    ):
        """Initialize with an async iterator of byte chunks.

        Args:
            chunks: Async iterator yielding raw body chunks
            close: Coroutine function releasing the upstream connection
        """
        self._iter = chunks
        self._close = close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "RawStream":
        return self

    async def __anext__(self) -> bytes:
        return await self._iter.__anext__()

    async def aclose(self) -> None:
        """Release the upstream connection (idempotent)."""
        if self._closed:
            return
        self._closed = True
        if self._close is not None:
            await self._close()


class PromptMessage(BaseModel):
    """A message in the prompt sent upstream."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', or 'system'")
    content: str = Field(description="Content of the message")


class LLMResponse(BaseModel):
    """Complete, non-streamed response from the gateway."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Generated text content")
    model: str = Field(description="Model that generated the response")
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )
