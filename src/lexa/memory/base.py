"""Abstract base class for conversation stores.

This module defines the interface for conversation persistence.
The abstraction hides:
- Storage format (dict, SQLite, hosted table)
- Persistence mechanism (in-memory, file, database)
- Connection management
"""

from abc import ABC, abstractmethod
from typing import Any

from .models import ConversationRecord, MessageRecord


class ConversationStore(ABC):
    """Abstract conversation store.

    The chat client treats every call as fire-and-forget: failures are
    logged by the caller and never reach the user-facing flow.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the store."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store gracefully."""

    @abstractmethod
    async def create_conversation(
        self,
        user_id: str | None = None,
        title: str | None = None
    ) -> ConversationRecord:
        """Create a conversation and return it with its identifier."""

    @abstractmethod
    async def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        agent_name: str | None = None,
        metadata: dict[str, Any] | None = None
    ) -> MessageRecord:
        """Append a message to a conversation."""

    @abstractmethod
    async def get_messages(self, conversation_id: str) -> list[MessageRecord]:
        """Get the messages of a conversation in order."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "ConversationStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
