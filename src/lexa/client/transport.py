"""HTTP transport between the chat client and the chat server.

Hidden design decisions:
- HTTP client library and connection handling
- Request body and header layout
- Translation of error responses into the error taxonomy
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from ..config import UNEXPECTED_ERROR_MESSAGE
from ..errors import (
    AuthenticationError,
    FatalUpstreamError,
    LexaError,
    TransientUpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def error_from_response(status_code: int, body: bytes) -> LexaError:
    """Map an error response {error, retry?} to the error taxonomy.

    Only an explicit `retry: true` makes an error retryable; any other
    body, including one that is not JSON, is terminal.
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        data = None

    if not isinstance(data, dict):
        return FatalUpstreamError(UNEXPECTED_ERROR_MESSAGE, status_code)

    message = str(data.get("error") or UNEXPECTED_ERROR_MESSAGE)
    if status_code == 401:
        return AuthenticationError(message)
    if status_code == 400:
        return ValidationError(message)
    if data.get("retry") is True:
        return TransientUpstreamError(message, status_code)
    return FatalUpstreamError(message, status_code)


def _unreachable(error: httpx.HTTPError) -> FatalUpstreamError:
    logger.warning("Chat request failed: %s", error)
    return FatalUpstreamError("Unable to reach the legal chat service. Please try again.")


async def _read_chunks(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.HTTPError as e:
        raise _unreachable(e) from e


class ChatTransport:
    """Sends chat requests to the server.

    Supports async context manager protocol:
        async with ChatTransport(url, token) as transport:
            async with transport.stream(messages) as chunks:
                async for chunk in chunks:
                    ...
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = 60.0,
    ):
        """Initialize the transport.

        Args:
            url: Full URL of the chat endpoint
            token: Bearer token sent in the Authorization header
            client: Optional preconfigured httpx client (tests use a MockTransport)
            timeout: Read timeout in seconds; None disables it
        """
        self._url = url
        self._token = token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=10.0))

    @property
    def url(self) -> str:
        return self._url

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _body(
        self,
        messages: list[dict[str, str]],
        conversation_id: str | None,
        stream: bool,
        attachments: list[dict[str, str]] | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "messages": messages,
            "conversationId": conversation_id,
            "stream": stream,
        }
        if attachments:
            body["attachments"] = attachments
        return body

    async def complete(
        self,
        messages: list[dict[str, str]],
        conversation_id: str | None = None,
        attachments: list[dict[str, str]] | None = None,
    ) -> str:
        """Request a single, fully drained answer.

        Raises:
            LexaError: Mapped from the server's error response
        """
        try:
            response = await self._client.post(
                self._url,
                json=self._body(messages, conversation_id, False, attachments),
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise _unreachable(e) from e
        if response.is_error:
            raise error_from_response(response.status_code, response.content)
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            data = None
        answer = data.get("response") if isinstance(data, dict) else None
        if not isinstance(answer, str):
            logger.warning("Malformed chat response (status %d)", response.status_code)
            raise FatalUpstreamError(UNEXPECTED_ERROR_MESSAGE, response.status_code)
        return answer

    @asynccontextmanager
    async def stream(
        self,
        messages: list[dict[str, str]],
        conversation_id: str | None = None,
        attachments: list[dict[str, str]] | None = None,
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open a streaming request and yield its raw body chunks.

        The error status is checked before anything is yielded, so a
        failure surfaces from entering the context. The response is closed
        on exit, including on cancellation.

        Raises:
            LexaError: Mapped from the server's error response
        """
        request = self._client.build_request(
            "POST",
            self._url,
            json=self._body(messages, conversation_id, True, attachments),
            headers=self._headers(),
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise _unreachable(e) from e
        try:
            if response.is_error:
                body = await response.aread()
                raise error_from_response(response.status_code, body)
            yield _read_chunks(response)
        finally:
            await response.aclose()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ChatTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
