"""Factory functions for CLI.

Centralizes creation of the transport, conversation store and chat
session from settings. Hides configuration details from command
implementations.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from ..client import ChatSession, ChatTransport, RetryPolicy
from ..config import ClientSettings
from ..memory import ConversationStore, create_conversation_store

# Default console for output
_console = Console()


def configure_logging(level: str = "warning", console: Console | None = None) -> None:
    """Route log records through Rich.

    Args:
        level: Log level name (debug, info, warning, error)
        console: Optional Rich console to log to (default: stderr)
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console or Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def get_store(settings: ClientSettings) -> ConversationStore:
    """Create the conversation store named by settings.

    Environment variables:
        LEXA_MEMORY_BACKEND: memory or sqlite (default: memory)
        LEXA_MEMORY_PATH: SQLite database file (default: ./lexa_conversations.db)
    """
    if settings.memory_backend == "sqlite":
        return create_conversation_store("sqlite", path=settings.memory_path)
    return create_conversation_store(settings.memory_backend)


def get_transport(settings: ClientSettings, console: Console | None = None) -> ChatTransport:
    """Create the HTTP transport to the chat server.

    Environment variables:
        LEXA_CHAT_URL: Chat endpoint URL
        LEXA_TOKEN: Bearer token
    """
    con = console or _console
    if not settings.token:
        con.print("[yellow]Warning: LEXA_TOKEN not set, the server will reject requests[/yellow]")
    return ChatTransport(settings.chat_url, settings.token)


def get_session(
    settings: ClientSettings,
    transport: ChatTransport,
    store: ConversationStore | None = None,
    **kwargs,
) -> ChatSession:
    """Create a chat session using the retry policy from settings."""
    return ChatSession(
        transport,
        store,
        stream=settings.stream,
        policy=RetryPolicy(max_retries=settings.max_retries, retry_delay=settings.retry_delay),
        **kwargs,
    )
