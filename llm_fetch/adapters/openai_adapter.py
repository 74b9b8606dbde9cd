"""
llm-fetch - OpenAI Provider Adapter

Client for OpenAI-compatible APIs: chat completions and legacy text
completions, complete or streamed.
"""

from typing import Any, Dict, Optional

from .base import BaseAdapter
from ..core.models import ChatCompletion, Completion, Provider
from ..streaming.normalizer import (
    normalize_openai_completion_chunk,
    openai_completion_to_text,
    openai_response_to_chat_completion,
)
from ..streaming.pipeline import Normalizer, NormalizedStream


class OpenAIAdapter(BaseAdapter):
    """
    Adapter for OpenAI API.

    Supports:
    - Chat completions
    - Legacy text completions
    - Streaming for both
    """

    provider = Provider.OPENAI

    CHAT_PATH = "chat/completions"
    COMPLETIONS_PATH = "completions"

    async def chat_completion(
        self,
        params: Dict[str, Any],
        request_id: str = ""
    ) -> ChatCompletion:
        """Generate a chat completion using OpenAI."""
        body = _without_stream(params)
        response = await self.transport.post_json(self.CHAT_PATH, body, request_id=request_id or None)
        return openai_response_to_chat_completion(response.data)

    async def chat_completion_stream(
        self,
        params: Dict[str, Any],
        request_id: str = "",
        normalizer: Optional[Normalizer] = None
    ) -> NormalizedStream:
        """Stream a chat completion; yields ChatCompletionChunk by default."""
        body = {**params, "stream": True}
        return await self._open_stream(self.CHAT_PATH, body, request_id, normalizer)

    async def completion(
        self,
        params: Dict[str, Any],
        request_id: str = ""
    ) -> Completion:
        """Generate a legacy text completion (first choice's text)."""
        body = _without_stream(params)
        response = await self.transport.post_json(self.COMPLETIONS_PATH, body, request_id=request_id or None)
        return openai_completion_to_text(response.data)

    async def completion_stream(
        self,
        params: Dict[str, Any],
        request_id: str = "",
        normalizer: Optional[Normalizer] = None
    ) -> NormalizedStream:
        """Stream a legacy text completion; yields CompletionChunk by default."""
        body = {**params, "stream": True}
        return await self._open_stream(
            self.COMPLETIONS_PATH,
            body,
            request_id,
            normalizer or normalize_openai_completion_chunk
        )


def _without_stream(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if k != "stream"}
