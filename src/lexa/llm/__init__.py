from .base import GatewayProvider
from .factory import create_gateway_provider
from .models import LLMResponse, PromptMessage, RawStream
from .providers import OpenAICompatibleProvider

__all__ = [
    "GatewayProvider",
    "create_gateway_provider",
    "LLMResponse",
    "OpenAICompatibleProvider",
    "PromptMessage",
    "RawStream",
]
