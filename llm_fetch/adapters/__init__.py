"""
llm-fetch Adapters Module

Provider-specific clients that send requests through the shared
transport and normalize the responses.
"""

from typing import Optional, Union

import httpx

from .base import BaseAdapter
from .openai_adapter import OpenAIAdapter
from .anthropic_adapter import AnthropicAdapter
from ..core.config import ClientConfig, get_provider, load_config
from ..core.models import Provider

__all__ = [
    "BaseAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "get_adapter",
]

ADAPTERS = {
    Provider.OPENAI: OpenAIAdapter,
    Provider.ANTHROPIC: AnthropicAdapter,
}


def get_adapter(
    provider: Union[str, Provider],
    config: Optional[ClientConfig] = None,
    client: Optional[httpx.AsyncClient] = None
) -> BaseAdapter:
    """
    Factory function to get the appropriate adapter for a provider.

    Args:
        provider: Provider name ("openai", "anthropic")
        config: Client configuration; read from the environment if omitted
        client: Optional httpx client to send requests with

    Returns:
        Configured adapter instance

    Raises:
        ValueError: If provider is not supported
        MissingAPIKeyError: If no config is given and no key is set
    """
    provider = get_provider(provider)
    if config is None:
        config = load_config(provider)
    return ADAPTERS[provider](config, client=client)
