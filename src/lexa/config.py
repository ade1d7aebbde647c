"""Configuration constants and environment-driven settings.

Centralizes magic numbers shared by the client and server, plus the
settings models built from environment variables.
"""

import os

from pydantic import BaseModel, Field

# Retry policy
MAX_RETRIES = 3  # Total attempts per outbound request
RETRY_DELAY = 1.0  # Seconds; linear backoff multiplier

# Request bounds
MAX_MESSAGES = 50  # Messages per request, history included
MAX_MESSAGE_LENGTH = 8000  # Characters per message after sanitization
MAX_ATTACHMENTS = 10
MAX_FILENAME_LENGTH = 255
MAX_ATTACHMENT_TYPE_LENGTH = 100

# Upstream gateway defaults
DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1"
DEFAULT_MODEL = "google/gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096

# Chat presentation
DEFAULT_AGENT_NAME = "Legal Analysis Agent"
DEFAULT_CONVERSATION_TITLE = "New Legal Consultation"
DISCLAIMER_TEXT = (
    "⚖️ This guidance is for informational purposes only and does not "
    "constitute legal advice. For specific legal matters, please consult a "
    "qualified advocate."
)
EMPTY_RESPONSE_TEXT = (
    "I apologize, but I was unable to process your request. "
    "Please try rephrasing your question."
)

# Caller-facing error messages; upstream bodies are never relayed
RATE_LIMITED_MESSAGE = (
    "Our AI service is experiencing high demand. Please wait a moment and try again."
)
UNAVAILABLE_MESSAGE = "AI service temporarily unavailable. Please try again later."
UPSTREAM_FAILURE_MESSAGE = (
    "We encountered an issue processing your request. Please try again."
)
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

# Endpoint path, kept compatible with the hosted function route
CHAT_PATH = "/functions/v1/legal-chat"


def _get_bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class ServerSettings(BaseModel):
    """Settings for the chat server."""

    gateway_api_key: str | None = Field(default=None, description="Upstream gateway API key")
    gateway_url: str = Field(default=DEFAULT_GATEWAY_URL)
    model: str = Field(default=DEFAULT_MODEL)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)
    api_tokens: list[str] = Field(
        default_factory=list,
        description="Static bearer tokens accepted when Supabase is not configured"
    )
    supabase_url: str | None = Field(default=None)
    supabase_anon_key: str | None = Field(default=None)
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    @classmethod
    def from_env(cls) -> "ServerSettings":
        """Build settings from environment variables.

        Environment variables:
            LLM_API_KEY: Upstream gateway key (falls back to LOVABLE_API_KEY)
            LLM_BASE_URL: Gateway base URL
            LLM_MODEL: Model name
            LLM_TEMPERATURE / LLM_MAX_TOKENS: Sampling parameters
            LEXA_API_TOKENS: Comma-separated static bearer tokens
            SUPABASE_URL / SUPABASE_ANON_KEY: Identity service
            LEXA_ALLOWED_ORIGINS: Comma-separated CORS origins (default: *)
            LEXA_HOST / LEXA_PORT: Bind address
        """
        tokens = os.getenv("LEXA_API_TOKENS", "")
        origins = os.getenv("LEXA_ALLOWED_ORIGINS", "*")
        return cls(
            gateway_api_key=os.getenv("LLM_API_KEY") or os.getenv("LOVABLE_API_KEY"),
            gateway_url=os.getenv("LLM_BASE_URL", DEFAULT_GATEWAY_URL),
            model=os.getenv("LLM_MODEL", DEFAULT_MODEL),
            temperature=float(os.getenv("LLM_TEMPERATURE", str(DEFAULT_TEMPERATURE))),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))),
            api_tokens=[t.strip() for t in tokens.split(",") if t.strip()],
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY"),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
            host=os.getenv("LEXA_HOST", "127.0.0.1"),
            port=int(os.getenv("LEXA_PORT", "8000")),
        )


class ClientSettings(BaseModel):
    """Settings for the chat client."""

    chat_url: str = Field(default=f"http://127.0.0.1:8000{CHAT_PATH}")
    token: str | None = Field(default=None, description="Bearer token sent with each request")
    stream: bool = Field(default=True)
    max_retries: int = Field(default=MAX_RETRIES, ge=1)
    retry_delay: float = Field(default=RETRY_DELAY, ge=0.0)
    memory_backend: str = Field(default="memory")
    memory_path: str = Field(default="./lexa_conversations.db")

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """Build settings from environment variables.

        Environment variables:
            LEXA_CHAT_URL: Full URL of the chat endpoint
            LEXA_TOKEN: Bearer token
            LEXA_STREAM: Request streaming responses (default: true)
            LEXA_MEMORY_BACKEND / LEXA_MEMORY_PATH: Conversation persistence
        """
        return cls(
            chat_url=os.getenv("LEXA_CHAT_URL", f"http://127.0.0.1:8000{CHAT_PATH}"),
            token=os.getenv("LEXA_TOKEN"),
            stream=_get_bool_env("LEXA_STREAM", True),
            memory_backend=os.getenv("LEXA_MEMORY_BACKEND", "memory"),
            memory_path=os.getenv("LEXA_MEMORY_PATH", "./lexa_conversations.db"),
        )
