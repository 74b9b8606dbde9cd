"""
llm-fetch - Pytest Configuration

Configures:
- Mock provider payloads (complete responses and SSE streams)
- In-memory byte sources for pipeline tests
- httpx.MockTransport based clients (no network)
- Logging for tests
"""

import json
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
import pytest

from llm_fetch.core.config import ClientConfig
from llm_fetch.observability.logging import setup_logging


# ============================================================
# SSE payload builders
# ============================================================

def openai_sse(events: Iterable[Dict[str, Any]], done: bool = True) -> bytes:
    """Encode events the way OpenAI streams them."""
    body = "".join(f"data: {json.dumps(event)}\n\n" for event in events)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


def anthropic_sse(events: Iterable[Dict[str, Any]]) -> bytes:
    """Encode events the way Anthropic streams them (type doubles as event name)."""
    body = "".join(
        f"event: {event['type']}\ndata: {json.dumps(event)}\n\n"
        for event in events
    )
    return body.encode("utf-8")


def openai_chat_event(content: Optional[str] = None, role: Optional[str] = None, finish_reason=None):
    delta: Dict[str, Any] = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    return {
        "id": "chatcmpl-stream1",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "gpt-4o",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }


def anthropic_text_events(*texts: str) -> List[Dict[str, Any]]:
    """A full Anthropic message stream carrying ``texts`` as text deltas."""
    events: List[Dict[str, Any]] = [
        {
            "type": "message_start",
            "message": {"id": "msg_stream1", "model": "claude-3-5-sonnet-20241022", "content": []},
        },
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
        {"type": "ping"},
    ]
    for text in texts:
        events.append({
            "type": "content_block_delta",
            "index": 0,
            "delta": {"type": "text_delta", "text": text},
        })
    events.extend([
        {"type": "content_block_stop", "index": 0},
        {"type": "message_delta", "delta": {"stop_reason": "end_turn"}, "usage": {"output_tokens": 2}},
        {"type": "message_stop"},
    ])
    return events


# ============================================================
# Byte sources
# ============================================================

class ByteSource:
    """
    In-memory async byte source.

    Records how many chunks were pulled and whether it was released.
    ``fail_after`` raises a transport error once that many chunks have
    been handed out.
    """

    def __init__(self, chunks: Iterable[bytes], fail_after: Optional[int] = None):
        self.chunks = list(chunks)
        self.fail_after = fail_after
        self.pulled = 0
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        if self.closed:
            raise StopAsyncIteration
        if self.fail_after is not None and self.pulled >= self.fail_after:
            raise httpx.ReadError("connection reset by peer")
        if self.pulled >= len(self.chunks):
            raise StopAsyncIteration
        chunk = self.chunks[self.pulled]
        self.pulled += 1
        return chunk

    async def aclose(self) -> None:
        self.closed = True


def split_at(data: bytes, *offsets: int) -> List[bytes]:
    """Split ``data`` at the given byte offsets."""
    parts = []
    start = 0
    for offset in offsets:
        parts.append(data[start:offset])
        start = offset
    parts.append(data[start:])
    return parts


def byte_by_byte(data: bytes) -> List[bytes]:
    return [data[i:i + 1] for i in range(len(data))]


# ============================================================
# Mock Providers (for unit tests)
# ============================================================

@pytest.fixture
def mock_openai_response():
    """Standard mock OpenAI chat response."""
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion",
        "created": 1234567890,
        "model": "gpt-4o",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": "Hello! I'm a mock response."
                },
                "finish_reason": "stop"
            }
        ],
        "usage": {
            "prompt_tokens": 10,
            "completion_tokens": 8,
            "total_tokens": 18
        }
    }


@pytest.fixture
def mock_openai_completion_response():
    """Standard mock OpenAI legacy completion response."""
    return {
        "id": "cmpl-test123",
        "object": "text_completion",
        "created": 1234567890,
        "model": "gpt-3.5-turbo-instruct",
        "choices": [
            {"index": 0, "text": "Once upon a time", "finish_reason": "length"}
        ],
    }


@pytest.fixture
def mock_anthropic_response():
    """Standard mock Anthropic response."""
    return {
        "id": "msg-test123",
        "type": "message",
        "role": "assistant",
        "content": [
            {
                "type": "text",
                "text": "Hello! I'm a mock Claude response."
            }
        ],
        "model": "claude-3-5-sonnet-20241022",
        "stop_reason": "end_turn",
        "usage": {
            "input_tokens": 10,
            "output_tokens": 8
        }
    }


@pytest.fixture
def mock_anthropic_tool_response():
    """Mock Anthropic response that calls a tool."""
    return {
        "id": "msg-tool123",
        "type": "message",
        "role": "assistant",
        "content": [
            {"type": "text", "text": "Let me check."},
            {"type": "tool_use", "id": "t1", "name": "foo", "input": {"x": 1}},
        ],
        "model": "claude-3-5-sonnet-20241022",
        "stop_reason": "tool_use",
        "usage": {"input_tokens": 20, "output_tokens": 5},
    }


@pytest.fixture
def mock_error_500():
    """Mock 500 error response."""
    return {
        "error": {
            "code": "internal_error",
            "message": "Internal server error",
            "type": "server_error"
        }
    }


@pytest.fixture
def mock_error_429():
    """Mock 429 rate limit response."""
    return {
        "error": {
            "code": "rate_limit_exceeded",
            "message": "Rate limit exceeded",
            "type": "rate_limit_error"
        }
    }


# ============================================================
# Mock HTTP Client
# ============================================================

class RecordingHandler:
    """
    httpx.MockTransport handler that records requests and replays
    queued responses.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responses: List[Callable[[httpx.Request], httpx.Response]] = []

    def add_json(self, status_code: int = 200, json_data: Any = None, headers: Optional[Dict[str, str]] = None):
        self.responses.append(
            lambda request: httpx.Response(status_code, json=json_data, headers=headers)
        )

    def add_stream(self, body: bytes, status_code: int = 200):
        self.responses.append(
            lambda request: httpx.Response(
                status_code,
                content=body,
                headers={"content-type": "text/event-stream"}
            )
        )

    def add_error(self, error: Exception):
        def raise_error(request):
            raise error
        self.responses.append(raise_error)

    def body(self, index: int = -1) -> Dict[str, Any]:
        return json.loads(self.requests[index].content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200, json={"status": "ok"})
        return self.responses.pop(0)(request)


@pytest.fixture
def mock_http():
    """
    Recording handler plus an httpx client that routes through it.

    Usage:
        async def test_something(mock_http):
            handler, client = mock_http
            handler.add_json(200, {"data": "test"})
    """
    handler = RecordingHandler()
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return handler, client


@pytest.fixture
def openai_config():
    return ClientConfig(api_key="sk-test", base_url="https://api.test/v1", organization_id="org-test")


@pytest.fixture
def anthropic_config():
    return ClientConfig(api_key="sk-ant-test", base_url="https://anthropic.test/v1")


# ============================================================
# Logging Configuration
# ============================================================

@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests."""
    setup_logging(level="DEBUG", json_output=False)
    yield
