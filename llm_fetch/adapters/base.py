"""
llm-fetch - Provider Adapter Base

Abstract base class for provider clients.
Each provider (OpenAI, Anthropic) implements this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ..core.config import ClientConfig, DEFAULT_BASE_URLS, build_headers, load_config
from ..core.http_client import HttpTransport
from ..core.models import ChatCompletion, Provider
from ..observability.logging import get_logger
from ..streaming.pipeline import Normalizer, NormalizedStream, create_stream_pipeline

logger = get_logger(__name__)


class BaseAdapter(ABC):
    """
    Abstract base class for provider clients.

    Each adapter must implement:
    - chat_completion: complete chat response
    - chat_completion_stream: streamed chat response

    The adapter is responsible for:
    1. Shaping the caller's request params for the provider endpoint
    2. Making the API call through the shared transport
    3. Converting the provider response to the canonical types

    Request params are passed through as given; building them is left to
    the caller.
    """

    provider: Provider

    def __init__(self, config: ClientConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.base_url = config.base_url or DEFAULT_BASE_URLS[self.provider]
        self.transport = HttpTransport(
            base_url=self.base_url,
            provider=self.provider.value,
            headers=build_headers(self.provider, config),
            timeout=config.timeout,
            client=client
        )

    @classmethod
    def from_env(cls, client: Optional[httpx.AsyncClient] = None, **overrides: Any) -> "BaseAdapter":
        """Create an adapter configured from environment variables."""
        return cls(load_config(cls.provider, **overrides), client=client)

    @abstractmethod
    async def chat_completion(
        self,
        params: Dict[str, Any],
        request_id: str = ""
    ) -> ChatCompletion:
        """
        Generate a chat completion.

        Args:
            params: Provider request params (model, messages, ...)
            request_id: Request ID for log correlation

        Returns:
            Canonical chat completion
        """
        pass

    @abstractmethod
    async def chat_completion_stream(
        self,
        params: Dict[str, Any],
        request_id: str = "",
        normalizer: Optional[Normalizer] = None
    ) -> NormalizedStream:
        """
        Start a streaming chat completion.

        HTTP errors are raised here, before any chunk is produced.
        Errors after streaming started surface from the returned stream
        as StreamInterruptedError.

        Args:
            params: Provider request params (model, messages, ...)
            request_id: Request ID for log correlation
            normalizer: Replaces the default raw-event normalizer

        Returns:
            Async iterator of normalized chunks
        """
        pass

    # ============================================================
    # Helper methods for subclasses
    # ============================================================

    async def _open_stream(
        self,
        path: str,
        body: Dict[str, Any],
        request_id: str,
        normalizer: Optional[Normalizer]
    ) -> NormalizedStream:
        pipeline = create_stream_pipeline(self.provider, normalizer)
        response = await self.transport.post_stream(path, body, request_id=request_id or None)
        logger.debug(
            f"STEP [stream] Streaming {path}",
            provider=self.provider.value,
            request_id=response.request_id
        )
        return NormalizedStream(
            response.aiter_bytes(),
            pipeline,
            on_close=response.aclose,
            request_id=response.request_id
        )

    async def close(self):
        """Close the HTTP client."""
        await self.transport.close()

    async def __aenter__(self) -> "BaseAdapter":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
