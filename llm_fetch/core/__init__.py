"""
llm-fetch Core Module

Canonical data models, typed errors, configuration and the HTTP transport.
"""

from .models import (
    # Enums
    Provider,
    Role,

    # Tool calling
    FunctionCall,
    ToolCall,
    ToolCallDelta,

    # Responses
    Usage,
    ChatMessage,
    Choice,
    ChatCompletion,
    Completion,

    # Stream chunks
    ChoiceDelta,
    ChunkChoice,
    ChatCompletionChunk,
    CompletionChunk,
)
from .errors import (
    ErrorType,
    ErrorDetails,
    LLMFetchException,
    InfraError,
    SemanticError,
    ConnectionTimeoutError,
    ReadTimeoutError,
    UpstreamError,
    RateLimitedError,
    StreamInterruptedError,
    MissingAPIKeyError,
    InvalidAPIKeyError,
    PermissionDeniedError,
    InvalidRequestError,
    handle_provider_error,
)
from .config import ClientConfig, build_headers, get_provider, load_config
from .http_client import HttpTransport, StreamingResponse, TransportResponse

__all__ = [
    "Provider",
    "Role",
    "FunctionCall",
    "ToolCall",
    "ToolCallDelta",
    "Usage",
    "ChatMessage",
    "Choice",
    "ChatCompletion",
    "Completion",
    "ChoiceDelta",
    "ChunkChoice",
    "ChatCompletionChunk",
    "CompletionChunk",
    "ErrorType",
    "ErrorDetails",
    "LLMFetchException",
    "InfraError",
    "SemanticError",
    "ConnectionTimeoutError",
    "ReadTimeoutError",
    "UpstreamError",
    "RateLimitedError",
    "StreamInterruptedError",
    "MissingAPIKeyError",
    "InvalidAPIKeyError",
    "PermissionDeniedError",
    "InvalidRequestError",
    "handle_provider_error",
    "ClientConfig",
    "build_headers",
    "get_provider",
    "load_config",
    "HttpTransport",
    "StreamingResponse",
    "TransportResponse",
]
