"""
llm-fetch - Client Configuration

Resolves per-provider settings from explicit arguments first and the
environment second.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from .errors import MissingAPIKeyError
from .models import Provider

USER_AGENT = "llm-fetch"
ANTHROPIC_API_VERSION = "2023-06-01"
DEFAULT_TIMEOUT = 60.0

DEFAULT_BASE_URLS = {
    Provider.OPENAI: "https://api.openai.com/v1",
    Provider.ANTHROPIC: "https://api.anthropic.com/v1",
}

# (api key, base url) environment variables per provider
_ENV_VARS = {
    Provider.OPENAI: ("OPENAI_API_KEY", "OPENAI_BASE_URL"),
    Provider.ANTHROPIC: ("ANTHROPIC_API_KEY", "ANTHROPIC_BASE_URL"),
}


@dataclass
class ClientConfig:
    """Settings for one provider client."""
    api_key: str
    base_url: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    organization_id: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


def get_provider(provider: Union[str, Provider]) -> Provider:
    """Resolve a provider tag, raising ValueError for unknown ones."""
    if isinstance(provider, Provider):
        return provider
    try:
        return Provider(provider.lower().strip())
    except ValueError:
        raise ValueError(f"Unsupported provider: {provider}") from None


def get_timeout() -> float:
    """Read LLM_FETCH_TIMEOUT (seconds), falling back to the default."""
    raw = os.getenv("LLM_FETCH_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError("Invalid LLM_FETCH_TIMEOUT. Use a number of seconds") from None
    if timeout <= 0:
        raise ValueError("LLM_FETCH_TIMEOUT must be positive")
    return timeout


def load_config(
    provider: Union[str, Provider],
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    organization_id: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> ClientConfig:
    """
    Build a ClientConfig for ``provider``.

    Raises:
        MissingAPIKeyError: no key passed and none in the environment
    """
    provider = get_provider(provider)
    key_var, url_var = _ENV_VARS[provider]

    api_key = api_key or os.getenv(key_var)
    if not api_key:
        raise MissingAPIKeyError(provider.value, key_var)

    if provider == Provider.OPENAI:
        organization_id = organization_id or os.getenv("OPENAI_ORG_ID")

    return ClientConfig(
        api_key=api_key,
        base_url=base_url or os.getenv(url_var) or DEFAULT_BASE_URLS[provider],
        timeout=timeout if timeout is not None else get_timeout(),
        organization_id=organization_id,
        headers=dict(headers or {}),
    )


def build_headers(provider: Union[str, Provider], config: ClientConfig) -> Dict[str, str]:
    """Default request headers for ``provider``; config headers win."""
    provider = get_provider(provider)
    headers = {"User-Agent": USER_AGENT, "Content-Type": "application/json"}

    if provider == Provider.OPENAI:
        headers["Authorization"] = f"Bearer {config.api_key}"
        if config.organization_id:
            headers["OpenAI-Organization"] = config.organization_id
    else:
        headers["x-api-key"] = config.api_key
        headers["anthropic-version"] = ANTHROPIC_API_VERSION

    headers.update(config.headers)
    return headers
