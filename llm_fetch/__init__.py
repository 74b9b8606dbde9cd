"""
llm-fetch - Streaming LLM Client

A lightweight async client for OpenAI-compatible and Anthropic-compatible
APIs. Streamed responses are decoded incrementally and normalized to one
OpenAI-shaped chunk type regardless of the provider.
"""

from .adapters import AnthropicAdapter, BaseAdapter, OpenAIAdapter, get_adapter
from .core.config import ClientConfig, load_config
from .core.errors import LLMFetchException, StreamInterruptedError
from .core.models import ChatCompletion, ChatCompletionChunk, CompletionChunk, Provider
from .streaming import NormalizedStream, StreamPipeline, create_parser, create_stream_pipeline

__version__ = "1.0.0"

__all__ = [
    "AnthropicAdapter",
    "BaseAdapter",
    "OpenAIAdapter",
    "get_adapter",
    "ClientConfig",
    "load_config",
    "LLMFetchException",
    "StreamInterruptedError",
    "ChatCompletion",
    "ChatCompletionChunk",
    "CompletionChunk",
    "Provider",
    "NormalizedStream",
    "StreamPipeline",
    "create_parser",
    "create_stream_pipeline",
]
