"""Error taxonomy shared by the chat client and the chat server.

Every error knows whether it may be retried and which HTTP status it maps
to, so the server can translate it into a response body and the client can
translate a response body back into an error.
"""


class LexaError(Exception):
    """Base class for chat errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def is_retryable(self) -> bool:
        """Override in subclasses to control retry behavior."""
        return False

    def to_body(self) -> dict[str, object]:
        """Render the caller-facing error body: {error, retry}."""
        return {"error": self.message, "retry": self.is_retryable()}


class AuthenticationError(LexaError):
    """Missing or invalid credential (non-retryable)."""

    status_code = 401


class ValidationError(LexaError):
    """Malformed, oversized or empty input (non-retryable)."""

    status_code = 400


class TransientUpstreamError(LexaError):
    """Upstream capacity or rate-limit condition (retryable)."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code

    def is_retryable(self) -> bool:
        return True


class FatalUpstreamError(LexaError):
    """Upstream condition that retrying will not fix, e.g. billing."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


# Raised by gateway providers; the server maps them to the classes above
# and never relays the upstream detail.

class UpstreamError(Exception):
    """Upstream gateway returned a non-success response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamRateLimitError(UpstreamError):
    """Upstream gateway is rate limiting (HTTP 429)."""


class UpstreamBillingError(UpstreamError):
    """Upstream gateway refused for billing/availability reasons (HTTP 402)."""
