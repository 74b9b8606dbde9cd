"""
llm-fetch - HTTP Transport

Thin httpx wrapper with a uniform contract: send a JSON body to a path and
get back either the decoded JSON or the raw byte stream.

- Request correlation (request_id header + logging)
- Step-based logging with latency
- Non-2xx statuses and connection failures raised as typed errors
  before any streaming begins
"""

import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from ..observability.logging import LogContext, TimedOperation, get_logger
from .errors import handle_provider_error

logger = get_logger(__name__)


@dataclass
class RequestContext:
    """Context for tracking one request through the transport."""
    request_id: str = field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")
    step_name: str = ""
    provider: str = ""
    path: str = ""

    def to_log_extra(self) -> Dict[str, str]:
        return {
            "request_id": self.request_id,
            "provider": self.provider,
            "step": self.step_name,
        }


@contextmanager
def request_log_context(ctx: RequestContext, body: Dict[str, Any]):
    """Tag every record logged during the request with its correlation fields."""
    token = LogContext.set_current(LogContext(
        request_id=ctx.request_id,
        provider=ctx.provider,
        model=str(body.get("model", "")),
        endpoint=ctx.path
    ))
    try:
        yield
    finally:
        LogContext.reset(token)


@dataclass
class TransportResponse:
    """Fully-buffered JSON response with metadata."""
    status_code: int
    data: Any
    headers: Dict[str, str]
    request_id: str
    latency_ms: float


class StreamingResponse:
    """
    Open streaming response.

    Owns the underlying httpx response until ``aclose()`` is called;
    bytes are delivered exactly as they arrive from the network.
    """

    def __init__(self, response: httpx.Response, ctx: RequestContext):
        self._response = response
        self._ctx = ctx
        self.status_code = response.status_code
        self.headers = dict(response.headers)
        self.request_id = ctx.request_id

    @property
    def is_closed(self) -> bool:
        return self._response.is_closed

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        return self._response.aiter_bytes()

    async def aclose(self) -> None:
        if not self._response.is_closed:
            await self._response.aclose()
            logger.debug(
                f"STEP [{self._ctx.step_name}] Stream released",
                **self._ctx.to_log_extra()
            )


class HttpTransport:
    """
    HTTP transport for one provider.

    Headers passed at construction are injected into every request.
    """

    def __init__(
        self,
        base_url: str,
        provider: str = "",
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.provider = provider
        self.timeout = timeout
        self.default_headers = headers or {}
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the HTTP client if this transport created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _build_request(
        self,
        path: str,
        body: Dict[str, Any],
        ctx: RequestContext,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Request:
        merged_headers = {**self.default_headers, **(headers or {})}
        merged_headers["X-Request-ID"] = ctx.request_id
        url = f"{self.base_url}/{path.lstrip('/')}"

        logger.info(
            f"STEP [{ctx.step_name}] Starting POST {url}",
            **ctx.to_log_extra()
        )
        logger.debug(
            f"Payload summary: {summarize_payload(body)}",
            **ctx.to_log_extra()
        )
        return self._get_client().build_request("POST", url, json=body, headers=merged_headers)

    async def post_json(
        self,
        path: str,
        body: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        request_id: Optional[str] = None
    ) -> TransportResponse:
        """
        POST ``body`` and return the decoded JSON response.

        Raises:
            LLMFetchException: connection failure or non-2xx status
        """
        ctx = RequestContext(
            request_id=request_id or f"req_{uuid.uuid4().hex[:12]}",
            step_name="post_json",
            provider=self.provider,
            path=path
        )
        with request_log_context(ctx, body):
            request = self._build_request(path, body, ctx, headers)
            start_time = time.time()

            try:
                with TimedOperation(f"POST {path}", logger, extra=ctx.to_log_extra()):
                    response = await self._get_client().send(request)
                    response.raise_for_status()
                    data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                raise handle_provider_error(e, self.provider, ctx.request_id) from e

            latency_ms = (time.time() - start_time) * 1000
            self._log_response(ctx, response.status_code, latency_ms)

        return TransportResponse(
            status_code=response.status_code,
            data=data,
            headers=dict(response.headers),
            request_id=ctx.request_id,
            latency_ms=latency_ms
        )

    async def post_stream(
        self,
        path: str,
        body: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        request_id: Optional[str] = None
    ) -> StreamingResponse:
        """
        POST ``body`` and return the response with its body left unread.

        The status is checked before returning: an error status is read,
        the connection released, and a typed error raised.
        """
        ctx = RequestContext(
            request_id=request_id or f"req_{uuid.uuid4().hex[:12]}",
            step_name="post_stream",
            provider=self.provider,
            path=path
        )
        with request_log_context(ctx, body):
            request = self._build_request(path, body, ctx, headers)
            start_time = time.time()

            try:
                response = await self._get_client().send(request, stream=True)
            except httpx.HTTPError as e:
                logger.warning(
                    f"STEP [{ctx.step_name}] Request failed: {e}",
                    **ctx.to_log_extra()
                )
                raise handle_provider_error(e, self.provider, ctx.request_id) from e

            latency_ms = (time.time() - start_time) * 1000
            self._log_response(ctx, response.status_code, latency_ms)

            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                try:
                    await response.aread()
                finally:
                    await response.aclose()
                raise handle_provider_error(e, self.provider, ctx.request_id) from e

        return StreamingResponse(response, ctx)

    def _log_response(self, ctx: RequestContext, status: int, latency_ms: float):
        """Log response received."""
        message = f"STEP [{ctx.step_name}] Response: status={status}, latency={latency_ms:.0f}ms"
        if status < 400:
            logger.info(message, **ctx.to_log_extra())
        else:
            logger.warning(message, **ctx.to_log_extra())


def summarize_payload(payload: Dict[str, Any]) -> str:
    """Create safe payload summary (no secrets, no message bodies)."""
    summary = {}
    for key, value in payload.items():
        if key in ("api_key", "key", "token", "secret", "password", "authorization"):
            summary[key] = "***REDACTED***"
        elif key == "messages" and isinstance(value, list):
            summary[key] = f"[{len(value)} messages]"
        elif isinstance(value, str) and len(value) > 100:
            summary[key] = f"{value[:50]}...({len(value)} chars)"
        else:
            summary[key] = value
    return str(summary)
