"""Accumulation of streamed tokens into the in-progress assistant message."""

from ..chat.metadata import derive_metadata
from ..chat.models import ChatMessage, ConversationSession, Role, temporary_id
from ..config import DEFAULT_AGENT_NAME, DISCLAIMER_TEXT


class MessageAccumulator:
    """Owns the single in-progress assistant message of one request.

    Content only ever grows. After every token the confidence and agent
    label are re-derived from the whole accumulated text, last marker
    wins. When no agent marker has been seen the default label is kept.
    """

    def __init__(
        self,
        session: ConversationSession,
        default_agent: str = DEFAULT_AGENT_NAME,
    ):
        self._session = session
        self._default_agent = default_agent
        self._message: ChatMessage | None = None
        self._parts: list[str] = []

    @property
    def message(self) -> ChatMessage | None:
        """The assistant message, once the first token has arrived."""
        return self._message

    @property
    def content(self) -> str:
        return "".join(self._parts)

    def append(self, token: str) -> ChatMessage:
        """Append a token, creating the assistant message on first use."""
        if self._message is None:
            self._message = self._session.append(ChatMessage(
                id=temporary_id("temp-assistant"),
                role=Role.ASSISTANT,
                content="",
                agent_name=self._default_agent,
            ))

        self._parts.append(token)
        content = self.content
        metadata = derive_metadata(content)
        self._message.content = content
        self._message.confidence = metadata.confidence
        self._message.agent_name = metadata.agent_name or self._default_agent
        return self._message

    def finish(self) -> ChatMessage:
        """Append the fixed disclaimer notice after a completed response."""
        return self._session.append(ChatMessage(
            id=temporary_id("disclaimer"),
            role=Role.SYSTEM,
            content=DISCLAIMER_TEXT,
        ))
