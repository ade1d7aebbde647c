"""Chat session: the client-side request/response flow.

Hidden design decisions:
- When the optimistic user message is shown and when it is rolled back
- How streamed tokens reach the visible assistant message
- Which request owns visible state when requests overlap
- When conversation history is persisted
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any

from ..chat.models import ChatMessage, ConversationSession, Role
from ..errors import LexaError
from ..memory.base import ConversationStore
from .accumulator import MessageAccumulator
from .gate import RequestGate, RequestTicket
from .retry import RetryPolicy, run_with_retry
from .stream import iter_deltas
from .transport import ChatTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorNotice:
    """User-facing failure with a one-click retry of the original input."""

    message: str
    retry_input: str
    attachments: tuple[dict[str, str], ...] = ()


class ChatSession:
    """Client-side owner of one conversation.

    Only the most recently started request may change visible state;
    every mutation is guarded by the request gate.

    Usage:
        async with ChatTransport(url, token) as transport:
            chat = ChatSession(transport, store)
            await chat.send_message("My landlord kept my deposit")
            for message in chat.messages:
                print(message.role, message.content)
    """

    def __init__(
        self,
        transport: ChatTransport,
        store: ConversationStore | None = None,
        user_id: str | None = None,
        stream: bool = True,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_change: Callable[["ChatSession"], None] | None = None,
    ):
        """Initialize a chat session.

        Args:
            transport: HTTP transport to the chat server
            store: Optional conversation store for persisted history
            user_id: Owner recorded on created conversations
            stream: Request streamed responses (default: True)
            policy: Retry policy for outbound requests
            sleep: Awaitable sleep used between retries
            on_change: Called after every visible state change
        """
        self._transport = transport
        self._store = store
        self._user_id = user_id
        self._stream = stream
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self.on_change = on_change
        self._gate = RequestGate()
        self.conversation = ConversationSession()
        self.notifications: list[ErrorNotice] = []
        self.is_loading = False

    @property
    def messages(self) -> list[ChatMessage]:
        return self.conversation.messages

    @property
    def conversation_id(self) -> str | None:
        return self.conversation.conversation_id

    def submit(
        self,
        text: str,
        attachments: list[dict[str, str]] | None = None
    ) -> asyncio.Task | None:
        """Start a request for text, superseding any request in flight.

        Returns:
            The task running the request, or None for blank input
        """
        if not text.strip() and not attachments:
            return None

        ticket = self._gate.begin()
        self.is_loading = True
        task = asyncio.create_task(self._run(ticket, text, tuple(attachments or ())))
        self._gate.attach(ticket, task)
        self._changed()
        return task

    async def send_message(
        self,
        text: str,
        attachments: list[dict[str, str]] | None = None
    ) -> None:
        """Submit text and wait until its request finishes or is superseded."""
        task = self.submit(text, attachments)
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            # Superseded before it started running

    async def retry(self, notice: ErrorNotice) -> None:
        """Resubmit the exact input of a failed request."""
        if notice in self.notifications:
            self.notifications.remove(notice)
        await self.send_message(notice.retry_input, list(notice.attachments) or None)

    def cancel(self) -> bool:
        """Cancel the request in flight, if any.

        The loading flag is reset immediately. Cancelling when nothing is
        running is a no-op.
        """
        cancelled = self._gate.cancel()
        self.is_loading = False
        if cancelled:
            logger.info("Chat request cancelled")
            self._changed()
        return cancelled

    def clear(self) -> None:
        """Cancel any request and start a fresh conversation."""
        self._gate.cancel()
        self.is_loading = False
        self.conversation = ConversationSession()
        self.notifications.clear()
        self._changed()

    async def _run(
        self,
        ticket: RequestTicket,
        text: str,
        attachments: tuple[dict[str, str], ...],
    ) -> None:
        user_message: ChatMessage | None = None
        accumulator: MessageAccumulator | None = None
        try:
            conversation_id = await self._ensure_conversation()
            if not self._gate.is_current(ticket):
                return

            user_message = self.conversation.append(ChatMessage(role=Role.USER, content=text))
            history = self.conversation.history()
            self._changed()
            await self._save(conversation_id, Role.USER, text)

            accumulator = MessageAccumulator(self.conversation)
            if self._stream:
                completed = await self._stream_response(
                    ticket, accumulator, history, conversation_id, list(attachments)
                )
                if not completed:
                    return
            else:
                answer = await run_with_retry(
                    lambda: self._transport.complete(history, conversation_id, list(attachments)),
                    self._policy,
                    self._sleep,
                )
                if not self._gate.is_current(ticket):
                    return
                if answer:
                    accumulator.append(answer)

            message = accumulator.message
            if message is not None:
                metadata: dict[str, Any] = {}
                if message.confidence is not None:
                    metadata["confidence"] = message.confidence.value
                await self._save(
                    conversation_id,
                    Role.ASSISTANT,
                    message.content,
                    agent_name=message.agent_name,
                    metadata=metadata or None,
                )
                if not self._gate.is_current(ticket):
                    return

            accumulator.finish()
            self._changed()

        except asyncio.CancelledError:
            if self._gate.is_current(ticket):
                raise
            logger.debug("Request %d superseded", ticket.generation)

        except LexaError as e:
            if not self._gate.is_current(ticket):
                return
            logger.warning("Chat request failed: %s", e.message)
            if user_message is not None:
                self.conversation.remove(user_message.id)
            if accumulator is not None and accumulator.message is not None:
                self.conversation.remove(accumulator.message.id)
            self.notifications.append(ErrorNotice(e.message, text, attachments))
            self._changed()

        finally:
            if self._gate.is_current(ticket):
                self.is_loading = False
                self._gate.release(ticket)
                self._changed()

    async def _stream_response(
        self,
        ticket: RequestTicket,
        accumulator: MessageAccumulator,
        history: list[dict[str, str]],
        conversation_id: str | None,
        attachments: list[dict[str, str]],
    ) -> bool:
        """Stream tokens into the accumulator.

        Returns:
            False if the request stopped owning the chat mid-stream
        """
        async with AsyncExitStack() as stack:
            chunks = await run_with_retry(
                lambda: stack.enter_async_context(
                    self._transport.stream(history, conversation_id, attachments)
                ),
                self._policy,
                self._sleep,
            )
            async for token in iter_deltas(chunks):
                if not self._gate.is_current(ticket):
                    return False
                accumulator.append(token)
                self._changed()
        return self._gate.is_current(ticket)

    async def _ensure_conversation(self) -> str | None:
        if self.conversation.conversation_id is not None or self._store is None:
            return self.conversation.conversation_id
        try:
            record = await self._store.create_conversation(user_id=self._user_id)
        except Exception as e:
            logger.warning("Error creating conversation: %s", e)
            return None
        if self.conversation.conversation_id is None:
            self.conversation.assign_conversation_id(record.id)
        return self.conversation.conversation_id

    async def _save(
        self,
        conversation_id: str | None,
        role: Role,
        content: str,
        agent_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if self._store is None or conversation_id is None:
            return
        try:
            await self._store.append_message(
                conversation_id,
                role.value,
                content,
                agent_name=agent_name,
                metadata=metadata,
            )
        except Exception as e:
            logger.warning("Error saving %s message: %s", role.value, e)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
