"""
LeXa: streaming legal-guidance chat client and LLM proxy server.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .chat import ChatMessage, Confidence, ConversationSession, Role
from .client import ChatSession, ChatTransport, RetryPolicy
from .errors import (
    AuthenticationError,
    FatalUpstreamError,
    LexaError,
    TransientUpstreamError,
    ValidationError,
)

__all__ = [
    "AuthenticationError",
    "ChatMessage",
    "ChatSession",
    "ChatTransport",
    "Confidence",
    "ConversationSession",
    "FatalUpstreamError",
    "LexaError",
    "RetryPolicy",
    "Role",
    "TransientUpstreamError",
    "ValidationError",
]
