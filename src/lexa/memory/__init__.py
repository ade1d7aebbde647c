"""Conversation persistence for lexa.

Stores conversations and their messages for later correlation.
"""

from .base import ConversationStore
from .factory import create_conversation_store
from .models import ConversationRecord, MessageRecord

__all__ = [
    "ConversationRecord",
    "ConversationStore",
    "MessageRecord",
    "create_conversation_store",
]
