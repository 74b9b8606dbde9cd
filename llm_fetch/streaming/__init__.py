"""
llm-fetch - Streaming Module

Incremental decoding of provider SSE byte streams into normalized chunks:
- Line / event-block decoding across arbitrary chunk boundaries
- OpenAI and Anthropic event parsers selected by provider tag
- Pluggable normalizers mapping raw events to canonical chunks
- Lazy, cancellable pipeline with an unbounded queue
"""

from .decoder import EventBlockDecoder, LineDecoder
from .parsers import (
    AnthropicSSEParser,
    EventParser,
    OpenAISSEParser,
    create_parser,
)
from .normalizer import (
    anthropic_message_to_chat_completion,
    convert_anthropic_usage,
    filter_system_messages,
    normalize_anthropic_text_delta,
    normalize_openai_chunk,
    normalize_openai_completion_chunk,
    openai_completion_to_text,
    openai_response_to_chat_completion,
    to_anthropic_params,
)
from .pipeline import (
    NOT_READY,
    NormalizedStream,
    StreamPipeline,
    create_stream_pipeline,
)

__all__ = [
    # Decoder
    "LineDecoder",
    "EventBlockDecoder",
    # Parsers
    "EventParser",
    "OpenAISSEParser",
    "AnthropicSSEParser",
    "create_parser",
    # Normalizers
    "normalize_openai_chunk",
    "normalize_openai_completion_chunk",
    "normalize_anthropic_text_delta",
    "anthropic_message_to_chat_completion",
    "openai_response_to_chat_completion",
    "openai_completion_to_text",
    "convert_anthropic_usage",
    "filter_system_messages",
    "to_anthropic_params",
    # Pipeline
    "StreamPipeline",
    "NormalizedStream",
    "NOT_READY",
    "create_stream_pipeline",
]
