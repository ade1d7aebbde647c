"""Prompt composition and upstream forwarding for the chat endpoint.

Hidden design decisions:
- Where the fixed system instructions go (always first)
- How attachments are mentioned to the model
- How upstream failure classes become caller-facing errors
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    EMPTY_RESPONSE_TEXT,
    RATE_LIMITED_MESSAGE,
    UNAVAILABLE_MESSAGE,
    UPSTREAM_FAILURE_MESSAGE,
)
from ..errors import (
    FatalUpstreamError,
    LexaError,
    TransientUpstreamError,
    UpstreamBillingError,
    UpstreamError,
    UpstreamRateLimitError,
    ValidationError,
)
from ..llm.base import GatewayProvider
from ..llm.models import PromptMessage, RawStream
from ..prompts import get_system_prompt
from .schemas import ChatRequest

logger = logging.getLogger(__name__)


def upstream_failure(error: UpstreamError) -> LexaError:
    """Translate an upstream failure without relaying its detail."""
    if isinstance(error, UpstreamRateLimitError):
        return TransientUpstreamError(RATE_LIMITED_MESSAGE, status_code=429)
    if isinstance(error, UpstreamBillingError):
        return FatalUpstreamError(UNAVAILABLE_MESSAGE, status_code=402)
    return TransientUpstreamError(UPSTREAM_FAILURE_MESSAGE, status_code=500)


def _describe_validation_error(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value").removeprefix("Value error, ")
    return f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}"


class RequestComposer:
    """Validates chat requests, builds the prompt, and forwards it upstream."""

    def __init__(
        self,
        provider: GatewayProvider,
        system_prompt: str | None = None,
        model: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int | None = DEFAULT_MAX_TOKENS,
    ):
        """Initialize the composer.

        Args:
            provider: Upstream gateway
            system_prompt: Fixed instructions (default: packaged system prompt)
            model: Model override (None uses the provider's default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
        """
        self._provider = provider
        self._system_prompt = system_prompt if system_prompt is not None else get_system_prompt()
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def parse_request(self, body: Any) -> ChatRequest:
        """Validate and sanitize a raw request body.

        Raises:
            ValidationError: Naming the first constraint that failed; nothing
                of the request is processed
        """
        try:
            return ChatRequest.model_validate(body)
        except PydanticValidationError as e:
            raise ValidationError(_describe_validation_error(e)) from e

    def compose(self, request: ChatRequest) -> list[PromptMessage]:
        """Build the full prompt: system block, then every turn in its original order."""
        turns = [PromptMessage(role=m.role, content=m.content) for m in request.messages]

        if request.attachments and turns[-1].role == "user":
            names = ", ".join(a.describe() for a in request.attachments)
            turns[-1] = PromptMessage(
                role="user",
                content=f"{turns[-1].content}\n\n[Attached files: {names}]",
            )

        return [PromptMessage(role="system", content=self._system_prompt), *turns]

    async def complete(self, request: ChatRequest) -> str:
        """Fully drain one upstream answer."""
        try:
            response = await self._provider.chat_completion(
                self.compose(request),
                model=self._model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except UpstreamError as e:
            raise upstream_failure(e) from e

        logger.info("AI response received, length: %d", len(response.content))
        return response.content or EMPTY_RESPONSE_TEXT

    async def open_stream(self, request: ChatRequest) -> RawStream:
        """Open the upstream stream to relay unmodified."""
        try:
            return await self._provider.open_stream(
                self.compose(request),
                model=self._model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except UpstreamError as e:
            raise upstream_failure(e) from e
