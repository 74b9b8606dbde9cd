"""
llm-fetch - Anthropic Provider Adapter

Client for the Anthropic Messages API. Responses are translated to the
OpenAI-shaped canonical types.
"""

import functools
import uuid
from typing import Any, Dict, Optional

from .base import BaseAdapter
from ..core.models import ChatCompletion, Provider
from ..streaming.normalizer import (
    anthropic_message_to_chat_completion,
    normalize_anthropic_text_delta,
    to_anthropic_params,
)
from ..streaming.pipeline import Normalizer, NormalizedStream


class AnthropicAdapter(BaseAdapter):
    """
    Adapter for Anthropic Claude API.

    System-role messages are dropped from outbound params. Streams carry
    text deltas only; tool-input deltas and other events are ignored.
    """

    provider = Provider.ANTHROPIC

    MESSAGES_PATH = "messages"

    async def chat_completion(
        self,
        params: Dict[str, Any],
        request_id: str = ""
    ) -> ChatCompletion:
        """Generate a chat completion using Claude."""
        body = to_anthropic_params(params)
        body.pop("stream", None)
        response = await self.transport.post_json(self.MESSAGES_PATH, body, request_id=request_id or None)
        return anthropic_message_to_chat_completion(response.data)

    async def chat_completion_stream(
        self,
        params: Dict[str, Any],
        request_id: str = "",
        normalizer: Optional[Normalizer] = None
    ) -> NormalizedStream:
        """
        Stream a chat completion.

        By default every chunk of one stream shares an id and carries the
        requested model name.
        """
        body = {**to_anthropic_params(params), "stream": True}
        if normalizer is None:
            normalizer = functools.partial(
                normalize_anthropic_text_delta,
                model=params.get("model", ""),
                chunk_id=f"chatcmpl-{uuid.uuid4().hex[:12]}"
            )
        return await self._open_stream(self.MESSAGES_PATH, body, request_id, normalizer)
