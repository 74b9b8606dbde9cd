"""
llm-fetch - HTTP Transport Tests

Verifies:
- JSON requests carry default headers and a request id
- Error statuses raise typed errors before any streaming
- Streaming responses deliver raw bytes and can be released
"""

import logging

import httpx
import pytest

from llm_fetch.core.errors import (
    ConnectionTimeoutError,
    InvalidAPIKeyError,
    RateLimitedError,
    ReadTimeoutError,
    UpstreamError,
)
from llm_fetch.core.http_client import HttpTransport, summarize_payload
from llm_fetch.observability.logging import LogContext


def make_transport(client, **kwargs):
    return HttpTransport(
        base_url="https://api.test/v1/",
        provider="openai",
        headers={"Authorization": "Bearer sk-test"},
        client=client,
        **kwargs
    )


class TestPostJson:
    """Test HttpTransport.post_json."""

    @pytest.mark.asyncio
    async def test_success(self, mock_http, mock_openai_response):
        handler, client = mock_http
        handler.add_json(200, mock_openai_response)
        transport = make_transport(client)

        response = await transport.post_json("chat/completions", {"model": "gpt-4o"}, request_id="req_abc")

        assert response.status_code == 200
        assert response.data["id"] == "chatcmpl-test123"
        assert response.request_id == "req_abc"
        assert response.latency_ms >= 0

        request = handler.requests[0]
        assert str(request.url) == "https://api.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert request.headers["X-Request-ID"] == "req_abc"
        assert handler.body() == {"model": "gpt-4o"}

    @pytest.mark.asyncio
    async def test_generated_request_id(self, mock_http):
        handler, client = mock_http
        handler.add_json(200, {})
        transport = make_transport(client)

        response = await transport.post_json("x", {})

        assert response.request_id.startswith("req_")
        assert handler.requests[0].headers["X-Request-ID"] == response.request_id

    @pytest.mark.asyncio
    async def test_per_request_headers(self, mock_http):
        handler, client = mock_http
        handler.add_json(200, {})
        transport = make_transport(client)

        await transport.post_json("x", {}, headers={"X-Extra": "1"})

        assert handler.requests[0].headers["X-Extra"] == "1"

    @pytest.mark.asyncio
    async def test_401_raises_invalid_key(self, mock_http):
        handler, client = mock_http
        handler.add_json(401, {"error": {"message": "Incorrect API key", "type": "invalid_request_error"}})
        transport = make_transport(client)

        with pytest.raises(InvalidAPIKeyError) as exc_info:
            await transport.post_json("x", {})

        assert exc_info.value.error.message == "Incorrect API key"

    @pytest.mark.asyncio
    async def test_429_raises_rate_limited(self, mock_http, mock_error_429):
        handler, client = mock_http
        handler.add_json(429, mock_error_429, headers={"retry-after": "7"})
        transport = make_transport(client)

        with pytest.raises(RateLimitedError) as exc_info:
            await transport.post_json("x", {})

        assert exc_info.value.error.retry_after == 7

    @pytest.mark.asyncio
    async def test_500_raises_upstream(self, mock_http, mock_error_500):
        handler, client = mock_http
        handler.add_json(500, mock_error_500)
        transport = make_transport(client)

        with pytest.raises(UpstreamError) as exc_info:
            await transport.post_json("x", {})

        assert exc_info.value.status_code == 500
        assert exc_info.value.error.message == "Internal server error"

    @pytest.mark.asyncio
    async def test_connect_error(self, mock_http):
        handler, client = mock_http
        handler.add_error(httpx.ConnectError("refused"))
        transport = make_transport(client)

        with pytest.raises(ConnectionTimeoutError):
            await transport.post_json("x", {})

    @pytest.mark.asyncio
    async def test_read_timeout(self, mock_http):
        handler, client = mock_http
        handler.add_error(httpx.ReadTimeout("slow"))
        transport = make_transport(client)

        with pytest.raises(ReadTimeoutError):
            await transport.post_json("x", {})

    @pytest.mark.asyncio
    async def test_invalid_json_body(self, mock_http):
        handler, client = mock_http
        handler.responses.append(lambda request: httpx.Response(200, content=b"<html>"))
        transport = make_transport(client)

        with pytest.raises(UpstreamError):
            await transport.post_json("x", {})

    @pytest.mark.asyncio
    async def test_log_context_set_for_request(self, mock_http, caplog):
        """Records logged during the request carry model and endpoint."""
        handler, client = mock_http
        handler.add_json(200, {})
        transport = make_transport(client)

        with caplog.at_level(logging.DEBUG, logger="llm_fetch"):
            await transport.post_json("chat/completions", {"model": "gpt-4o"}, request_id="req_ctx")

        record = next(r for r in caplog.records if "Response: status=200" in r.getMessage())
        assert record.model == "gpt-4o"
        assert record.endpoint == "chat/completions"
        assert record.request_id == "req_ctx"
        assert LogContext.get_current() is None

    @pytest.mark.asyncio
    async def test_log_context_restored_after_error(self, mock_http, mock_error_500):
        handler, client = mock_http
        handler.add_json(500, mock_error_500)
        transport = make_transport(client)
        outer = LogContext(request_id="outer")
        token = LogContext.set_current(outer)

        try:
            with pytest.raises(UpstreamError):
                await transport.post_json("x", {"model": "gpt-4o"})

            assert LogContext.get_current() is outer
        finally:
            LogContext.reset(token)


class TestPostStream:
    """Test HttpTransport.post_stream."""

    @pytest.mark.asyncio
    async def test_streams_raw_bytes(self, mock_http):
        handler, client = mock_http
        handler.add_stream(b"data: {\"a\":1}\n\ndata: [DONE]\n\n")
        transport = make_transport(client)

        response = await transport.post_stream("chat/completions", {"stream": True})
        body = b"".join([chunk async for chunk in response.aiter_bytes()])
        await response.aclose()

        assert body == b"data: {\"a\":1}\n\ndata: [DONE]\n\n"
        assert response.status_code == 200
        assert response.is_closed

    @pytest.mark.asyncio
    async def test_error_status_raises_before_streaming(self, mock_http):
        handler, client = mock_http
        handler.add_json(400, {"error": {"message": "bad model", "code": "model_not_found", "param": "model"}})
        transport = make_transport(client)

        with pytest.raises(Exception) as exc_info:
            await transport.post_stream("chat/completions", {"stream": True})

        error = exc_info.value.error
        assert error.code == "model_not_found"
        assert error.param == "model"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_connect_error(self, mock_http):
        handler, client = mock_http
        handler.add_error(httpx.ConnectError("refused"))
        transport = make_transport(client)

        with pytest.raises(ConnectionTimeoutError):
            await transport.post_stream("x", {})

    @pytest.mark.asyncio
    async def test_log_context_set_for_request(self, mock_http, caplog):
        handler, client = mock_http
        handler.add_stream(b"data: [DONE]\n\n")
        transport = make_transport(client)

        with caplog.at_level(logging.DEBUG, logger="llm_fetch"):
            response = await transport.post_stream("chat/completions", {"model": "gpt-4o-mini", "stream": True})
        await response.aclose()

        record = next(r for r in caplog.records if "Starting POST" in r.getMessage())
        assert record.model == "gpt-4o-mini"
        assert record.endpoint == "chat/completions"
        assert LogContext.get_current() is None


class TestTransportLifecycle:
    """Test client ownership."""

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self, mock_http):
        _, client = mock_http

        async with make_transport(client):
            pass

        assert not client.is_closed

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        transport = HttpTransport(base_url="https://api.test/v1")
        client = transport._get_client()

        await transport.close()

        assert client.is_closed


class TestSummarizePayload:
    """Test payload summaries used in debug logs."""

    def test_redacts_and_shortens(self):
        summary = summarize_payload({
            "api_key": "sk-secret",
            "messages": [{"role": "user", "content": "hi"}],
            "prompt": "x" * 200,
            "model": "gpt-4o",
        })

        assert "sk-secret" not in summary
        assert "[1 messages]" in summary
        assert "(200 chars)" in summary
        assert "gpt-4o" in summary
