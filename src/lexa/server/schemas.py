"""Request and response bodies of the chat endpoint.

Every free-text field is sanitized while it is validated, so a parsed
ChatRequest only ever holds clean, bounded text.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config import MAX_ATTACHMENT_TYPE_LENGTH, MAX_ATTACHMENTS, MAX_MESSAGES
from .sanitize import sanitize_filename, sanitize_markup, sanitize_text


class WireMessage(BaseModel):
    """One conversation turn as sent by the client."""

    role: Literal["user", "assistant", "system"]
    content: str

    @field_validator("content", mode="before")
    @classmethod
    def clean_content(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("content must be a string")
        text = sanitize_text(value)
        if not text.strip():
            raise ValueError("content must not be empty")
        return text


class Attachment(BaseModel):
    """A file the user attached; only its name and type reach the model."""

    name: str
    type: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value: Any) -> str:
        return sanitize_filename(value)

    @field_validator("type", mode="before")
    @classmethod
    def clean_type(cls, value: Any) -> str:
        return sanitize_markup(value, MAX_ATTACHMENT_TYPE_LENGTH)

    def describe(self) -> str:
        return f"{self.name} ({self.type})" if self.type else self.name


class ChatRequest(BaseModel):
    """Body of POST /functions/v1/legal-chat."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[WireMessage]
    conversation_id: str | None = Field(default=None, alias="conversationId")
    stream: bool = False
    attachments: list[Attachment] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def accept_single_message(cls, data: Any) -> Any:
        """Accept the single-string {message: "..."} form as one user turn."""
        if not isinstance(data, dict):
            raise ValueError("request body must be a JSON object")
        if data.get("messages") is None and data.get("message") is not None:
            data = {**data, "messages": [{"role": "user", "content": data["message"]}]}
        if data.get("messages") is None:
            raise ValueError("no message or messages provided")
        return data

    @field_validator("messages")
    @classmethod
    def check_message_count(cls, value: list[WireMessage]) -> list[WireMessage]:
        if not value:
            raise ValueError("messages must not be empty")
        if len(value) > MAX_MESSAGES:
            raise ValueError(f"at most {MAX_MESSAGES} messages are allowed, got {len(value)}")
        return value

    @field_validator("attachments")
    @classmethod
    def check_attachment_count(cls, value: list[Attachment]) -> list[Attachment]:
        if len(value) > MAX_ATTACHMENTS:
            raise ValueError(f"at most {MAX_ATTACHMENTS} attachments are allowed")
        return value

    @field_validator("conversation_id", mode="before")
    @classmethod
    def clean_conversation_id(cls, value: Any) -> str | None:
        if value is None:
            return None
        return sanitize_markup(value, 100) or None


class ChatResponse(BaseModel):
    response: str
