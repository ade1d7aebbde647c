"""Chat server: identity check, sanitization, prompt composition, upstream relay."""

from .app import create_app
from .auth import (
    IdentityVerifier,
    StaticTokenVerifier,
    SupabaseIdentityVerifier,
    UserIdentity,
    bearer_token,
)
from .composer import RequestComposer, upstream_failure
from .sanitize import sanitize_filename, sanitize_markup, sanitize_text
from .schemas import Attachment, ChatRequest, ChatResponse, WireMessage

__all__ = [
    "Attachment",
    "ChatRequest",
    "ChatResponse",
    "IdentityVerifier",
    "RequestComposer",
    "StaticTokenVerifier",
    "SupabaseIdentityVerifier",
    "UserIdentity",
    "WireMessage",
    "bearer_token",
    "create_app",
    "sanitize_filename",
    "sanitize_markup",
    "sanitize_text",
    "upstream_failure",
]
