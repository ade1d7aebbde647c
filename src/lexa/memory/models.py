"""Data models for conversation persistence.

These models define persisted conversations and messages,
independent of the storage backend used.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationRecord(BaseModel):
    """A persisted conversation."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str | None = Field(default=None, description="Owner of the conversation")
    title: str = Field(description="Human-readable title")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class MessageRecord(BaseModel):
    """A persisted chat message."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    conversation_id: str
    seq: int = Field(description="Sequential position within the conversation")
    role: str = Field(description="'user', 'assistant', or 'system'")
    content: str
    agent_name: str | None = Field(default=None)
    metadata: dict[str, Any] | None = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow)
