"""
llm-fetch - Error Definitions

Typed errors surfaced to callers, split into infra (transport trouble,
usually retryable) and semantic (the request itself must change).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx


class ErrorType(str, Enum):
    """Error classification."""
    INFRA = "infra_error"
    SEMANTIC = "semantic_error"


@dataclass
class ErrorDetails:
    """Full error information."""
    code: str
    message: str
    type: ErrorType

    provider: Optional[str] = None
    param: Optional[str] = None

    request_id: str = ""
    provider_request_id: Optional[str] = None

    retryable: bool = False
    retry_after: Optional[int] = None

    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "code": self.code,
            "message": self.message,
            "type": self.type.value,
            "request_id": self.request_id,
            "retryable": self.retryable,
        }

        if self.provider:
            result["provider"] = self.provider
        if self.param:
            result["param"] = self.param
        if self.provider_request_id:
            result["provider_request_id"] = self.provider_request_id
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        if self.details:
            result["details"] = self.details

        return {"error": result}


class LLMFetchException(Exception):
    """Base exception for all llm-fetch errors."""

    def __init__(self, error: ErrorDetails, status_code: int = 500):
        self.error = error
        self.status_code = status_code
        super().__init__(error.message)


# ============================================================
# Infra Errors (Retryable)
# ============================================================

class InfraError(LLMFetchException):
    """Base class for infrastructure errors."""
    pass


class ConnectionTimeoutError(InfraError):
    """Failed to connect to provider."""

    def __init__(self, provider: str, request_id: str = "", message: str = ""):
        super().__init__(
            ErrorDetails(
                code="connection_timeout",
                message=message or f"Failed to connect to {provider} API",
                type=ErrorType.INFRA,
                provider=provider,
                request_id=request_id,
                retryable=True,
                retry_after=5
            ),
            status_code=504
        )


class ReadTimeoutError(InfraError):
    """Provider did not respond in time."""

    def __init__(self, provider: str, request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="read_timeout",
                message=f"{provider} did not respond within timeout",
                type=ErrorType.INFRA,
                provider=provider,
                request_id=request_id,
                retryable=True,
                retry_after=10
            ),
            status_code=504
        )


class UpstreamError(InfraError):
    """Provider returned a server error (or something unclassifiable)."""

    def __init__(
        self,
        provider: str,
        status_code: int,
        message: str = "",
        request_id: str = "",
        provider_request_id: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            ErrorDetails(
                code=f"upstream_{status_code}" if status_code else "upstream_error",
                message=message or f"{provider} returned error {status_code}",
                type=ErrorType.INFRA,
                provider=provider,
                request_id=request_id,
                provider_request_id=provider_request_id or None,
                retryable=True,
                details=details or {}
            ),
            status_code=status_code or 502
        )


class RateLimitedError(InfraError):
    """Rate limit exceeded."""

    def __init__(
        self,
        provider: str,
        retry_after: int = 60,
        message: str = "",
        request_id: str = ""
    ):
        super().__init__(
            ErrorDetails(
                code="rate_limited",
                message=message or f"{provider} rate limit exceeded. Retry after {retry_after} seconds.",
                type=ErrorType.INFRA,
                provider=provider,
                request_id=request_id,
                retryable=True,
                retry_after=retry_after
            ),
            status_code=429
        )


class StreamInterruptedError(InfraError):
    """The byte stream failed after streaming had started."""

    def __init__(
        self,
        provider: str,
        chunks_delivered: int = 0,
        message: str = "",
        request_id: str = ""
    ):
        super().__init__(
            ErrorDetails(
                code="stream_interrupted",
                message=message or "Connection lost while streaming",
                type=ErrorType.INFRA,
                provider=provider,
                request_id=request_id,
                retryable=False,  # chunks may already have been consumed
                details={"chunks_delivered": chunks_delivered}
            ),
            status_code=502
        )


# ============================================================
# Semantic Errors (Not Retryable)
# ============================================================

class SemanticError(LLMFetchException):
    """Base class for semantic errors (caller must fix the request)."""
    pass


class MissingAPIKeyError(SemanticError):
    """No API key configured for a provider."""

    def __init__(self, provider: str, env_var: str):
        super().__init__(
            ErrorDetails(
                code="missing_api_key",
                message=(
                    f"Missing {provider} API key. Pass api_key explicitly "
                    f"or set the {env_var} environment variable."
                ),
                type=ErrorType.SEMANTIC,
                provider=provider,
                retryable=False
            ),
            status_code=401
        )


class InvalidAPIKeyError(SemanticError):
    """Provider rejected the credentials."""

    def __init__(self, provider: str, message: str = "", request_id: str = "", provider_request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="invalid_api_key",
                message=message or f"{provider} authentication failed",
                type=ErrorType.SEMANTIC,
                provider=provider,
                request_id=request_id,
                provider_request_id=provider_request_id or None,
                retryable=False
            ),
            status_code=401
        )


class PermissionDeniedError(SemanticError):
    """Credentials are valid but not allowed to do this."""

    def __init__(self, provider: str, message: str = "", request_id: str = "", provider_request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="permission_denied",
                message=message or f"{provider} denied the request",
                type=ErrorType.SEMANTIC,
                provider=provider,
                request_id=request_id,
                provider_request_id=provider_request_id or None,
                retryable=False
            ),
            status_code=403
        )


class InvalidRequestError(SemanticError):
    """Provider rejected the request (4xx other than auth/rate limit)."""

    def __init__(
        self,
        provider: str,
        status_code: int,
        message: str,
        code: str = "invalid_request",
        param: Optional[str] = None,
        request_id: str = "",
        provider_request_id: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            ErrorDetails(
                code=code or "invalid_request",
                message=message,
                type=ErrorType.SEMANTIC,
                provider=provider,
                param=param,
                request_id=request_id,
                provider_request_id=provider_request_id or None,
                retryable=False,
                details=details or {}
            ),
            status_code=status_code
        )


# ============================================================
# Provider error mapping
# ============================================================

def _parse_error_body(response: httpx.Response) -> Dict[str, Any]:
    """
    Pull the ``{"error": {...}}`` envelope both providers use.

    OpenAI:    {"error": {"message", "type", "code", "param"}}
    Anthropic: {"type": "error", "error": {"type", "message"}}
    """
    try:
        body = response.json()
    except ValueError:
        return {}
    if not isinstance(body, dict):
        return {}
    error_info = body.get("error")
    if isinstance(error_info, dict):
        return error_info
    if isinstance(error_info, str):
        return {"message": error_info}
    return {}


def _retry_after(response: httpx.Response, default: int = 60) -> int:
    value = response.headers.get("retry-after")
    if value is None:
        return default
    try:
        return int(float(value))
    except ValueError:
        return default


def handle_provider_error(
    error: Exception,
    provider: str,
    request_id: str = ""
) -> LLMFetchException:
    """
    Convert an httpx error to an llm-fetch exception.

    Already-converted errors pass through unchanged.
    """
    if isinstance(error, LLMFetchException):
        return error

    if isinstance(error, httpx.TimeoutException):
        if isinstance(error, httpx.ConnectTimeout):
            return ConnectionTimeoutError(provider, request_id)
        return ReadTimeoutError(provider, request_id)

    if isinstance(error, httpx.ConnectError):
        return ConnectionTimeoutError(provider, request_id, message=f"Failed to connect to {provider} API: {error}")

    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        status_code = response.status_code
        error_info = _parse_error_body(response)

        message = error_info.get("message")
        if not isinstance(message, str):
            message = f"{status_code} status code (no body)" if not response.content else str(error)
        error_type = error_info.get("type") or ""
        error_code = error_info.get("code") or ""
        param = error_info.get("param")
        provider_req_id = response.headers.get("x-request-id", "") or response.headers.get("request-id", "")
        context = {k: v for k, v in (("type", error_type), ("code", error_code)) if v}

        if status_code == 401:
            return InvalidAPIKeyError(provider, message, request_id, provider_req_id)

        if status_code == 403:
            return PermissionDeniedError(provider, message, request_id, provider_req_id)

        if status_code == 429:
            return RateLimitedError(provider, _retry_after(response), message, request_id)

        if 400 <= status_code < 500:
            return InvalidRequestError(
                provider,
                status_code,
                message,
                code=str(error_code) if error_code else "invalid_request",
                param=param,
                request_id=request_id,
                provider_request_id=provider_req_id,
                details=context
            )

        return UpstreamError(provider, status_code, message, request_id, provider_req_id, details=context)

    if isinstance(error, httpx.TransportError):
        return UpstreamError(provider, 0, f"{provider} transport error: {error}", request_id)

    return UpstreamError(provider, 0, str(error) or type(error).__name__, request_id)
