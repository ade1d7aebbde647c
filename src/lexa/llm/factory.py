from typing import Any

from .base import GatewayProvider
from .providers import OpenAICompatibleProvider


def create_gateway_provider(provider: str, **config: Any) -> GatewayProvider:
    """Create an upstream gateway provider.

    This factory function hides the instantiation logic for different gateways.

    Args:
        provider: Provider type ('gateway', 'openai')
        **config: Provider-specific configuration
            For gateway (OpenAI-compatible AI gateway):
                - api_key: str (required)
                - model: str (default: 'google/gemini-2.5-flash')
                - base_url: str (default: 'https://ai.gateway.lovable.dev/v1')
            For OpenAI:
                - api_key: str (required)
                - model: str (required, e.g. 'gpt-4o-mini')

    Returns:
        Initialized gateway provider instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> provider = create_gateway_provider(
        ...     "gateway",
        ...     api_key="...",
        ...     model="google/gemini-2.5-flash"
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower == "gateway":
        if "api_key" not in config:
            raise TypeError("Gateway provider requires 'api_key' in config")
        return OpenAICompatibleProvider(**config)

    if provider_lower == "openai":
        if "api_key" not in config:
            raise TypeError("OpenAI provider requires 'api_key' in config")
        if "model" not in config:
            raise TypeError("OpenAI provider requires 'model' in config")
        config.setdefault("base_url", None)
        return OpenAICompatibleProvider(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'gateway', 'openai'"
    )
