"""In-memory conversation store.

Simple dict-based storage for session-only persistence.
Data is lost when the application exits.
"""

from datetime import datetime, timezone
from typing import Any

from ..config import DEFAULT_CONVERSATION_TITLE
from .base import ConversationStore
from .models import ConversationRecord, MessageRecord


class InMemoryConversationStore(ConversationStore):
    """In-memory conversation store (session-only).

    Suitable for single-session use or testing.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, ConversationRecord] = {}
        self._messages: dict[str, list[MessageRecord]] = {}

    async def connect(self) -> None:
        """Initialize store (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close store (no-op for in-memory)."""
        pass

    async def create_conversation(
        self,
        user_id: str | None = None,
        title: str | None = None
    ) -> ConversationRecord:
        record = ConversationRecord(
            user_id=user_id,
            title=title or DEFAULT_CONVERSATION_TITLE,
        )
        self._conversations[record.id] = record
        self._messages[record.id] = []
        return record

    async def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        agent_name: str | None = None,
        metadata: dict[str, Any] | None = None
    ) -> MessageRecord:
        if conversation_id not in self._conversations:
            raise KeyError(f"Unknown conversation: {conversation_id}")

        messages = self._messages[conversation_id]
        record = MessageRecord(
            conversation_id=conversation_id,
            seq=len(messages) + 1,
            role=role,
            content=content,
            agent_name=agent_name,
            metadata=metadata,
        )
        messages.append(record)
        self._conversations[conversation_id].updated_at = datetime.now(timezone.utc)
        return record

    async def get_messages(self, conversation_id: str) -> list[MessageRecord]:
        return list(self._messages.get(conversation_id, []))

    @property
    def backend_type(self) -> str:
        return "memory"
