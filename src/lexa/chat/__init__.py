"""Chat data model and derived-metadata extraction."""

from .metadata import (
    MessageMetadata,
    derive_metadata,
    extract_agent_name,
    extract_confidence,
    extract_sections,
    split_reasoning,
)
from .models import ChatMessage, Confidence, ConversationSession, Role, temporary_id

__all__ = [
    "ChatMessage",
    "Confidence",
    "ConversationSession",
    "MessageMetadata",
    "Role",
    "derive_metadata",
    "extract_agent_name",
    "extract_confidence",
    "extract_sections",
    "split_reasoning",
    "temporary_id",
]
