"""Data models for chat conversations.

These models describe what the chat client shows and sends. Persisted
message records live in the memory module.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

TEMP_ID_PREFIXES = ("temp-", "disclaimer-")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def temporary_id(prefix: str = "temp") -> str:
    """Generate a local identifier that can later be told apart from a persisted one."""
    return f"{prefix}-{uuid4().hex}"


class Role(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Confidence(str, Enum):
    """Confidence level stated by the assistant."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ChatMessage(BaseModel):
    """A single turn in a conversation.

    Only the in-flight assistant message is mutated, and only by
    appending to its content.
    """

    id: str = Field(default_factory=temporary_id)
    role: Role = Field(description="Role of the message sender")
    content: str = Field(default="", description="Text of the message")
    agent_name: str | None = Field(default=None, description="Responding agent, derived from content")
    confidence: Confidence | None = Field(default=None, description="Confidence, derived from content")
    created_at: datetime = Field(default_factory=_now)

    @property
    def is_temporary(self) -> bool:
        """True when the id was generated locally rather than by the store."""
        return self.id.startswith(TEMP_ID_PREFIXES)

    def to_wire(self) -> dict[str, str]:
        """Convert to the {role, content} shape sent to the server."""
        return {"role": self.role.value, "content": self.content}


class ConversationSession(BaseModel):
    """Ordered messages of one conversation plus its persisted identifier."""

    conversation_id: str | None = Field(default=None)
    messages: list[ChatMessage] = Field(default_factory=list)

    def assign_conversation_id(self, conversation_id: str) -> None:
        """Assign the identifier once; it is stable afterwards."""
        if self.conversation_id is not None and self.conversation_id != conversation_id:
            raise ValueError(
                f"Conversation id already assigned: {self.conversation_id}"
            )
        self.conversation_id = conversation_id

    def append(self, message: ChatMessage) -> ChatMessage:
        self.messages.append(message)
        return message

    def remove(self, message_id: str) -> bool:
        """Remove a message by id. Used only to roll back a failed turn."""
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                del self.messages[index]
                return True
        return False

    def history(self) -> list[dict[str, str]]:
        """Conversation turns to send upstream.

        Locally generated system notices (the disclaimer) are not part of
        the conversation and are left out, so the model never sees the
        disclaimer as a prior turn.
        """
        return [m.to_wire() for m in self.messages if m.role is not Role.SYSTEM]
