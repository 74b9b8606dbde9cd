"""
llm-fetch - Core Data Models

Canonical, provider-agnostic shapes for chat responses and stream chunks.
Everything is OpenAI-shaped; Anthropic payloads are translated into it.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple


# ============================================================
# Enums
# ============================================================

class Provider(str, Enum):
    """Supported wire formats."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class Role(str, Enum):
    """Message roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


# ============================================================
# Tool Calling
# ============================================================

@dataclass(frozen=True)
class FunctionCall:
    """Function call made by the model."""
    name: str
    arguments: str  # JSON string

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "arguments": self.arguments}


@dataclass(frozen=True)
class ToolCall:
    """Tool call in a complete response."""
    id: str
    type: Literal["function"] = "function"
    function: FunctionCall = field(default_factory=lambda: FunctionCall("", ""))

    @classmethod
    def from_tool_use(cls, block: Dict[str, Any]) -> ToolCall:
        """Build from an Anthropic ``tool_use`` content block."""
        return cls(
            id=block["id"],
            function=FunctionCall(
                name=block["name"],
                arguments=json.dumps(block.get("input", {}), separators=(",", ":"), ensure_ascii=False),
            ),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ToolCall:
        """Build from an OpenAI ``tool_calls`` entry."""
        function = data.get("function") or {}
        return cls(
            id=data.get("id", ""),
            function=FunctionCall(
                name=function.get("name", ""),
                arguments=function.get("arguments", ""),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type, "function": self.function.to_dict()}


@dataclass(frozen=True)
class ToolCallDelta:
    """Incremental piece of a tool call inside a stream chunk."""
    index: int
    id: Optional[str] = None
    type: Optional[str] = None
    function_name: Optional[str] = None
    function_arguments: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"index": self.index}
        if self.id is not None:
            result["id"] = self.id
        if self.type is not None:
            result["type"] = self.type

        function: Dict[str, Any] = {}
        if self.function_name is not None:
            function["name"] = self.function_name
        if self.function_arguments is not None:
            function["arguments"] = self.function_arguments
        if function:
            result["function"] = function

        return result


# ============================================================
# Complete (non-streaming) responses
# ============================================================

@dataclass(frozen=True)
class Usage:
    """Token usage information."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def of(cls, prompt_tokens: int, completion_tokens: int) -> Usage:
        return cls(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens)

    def to_dict(self) -> Dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True)
class ChatMessage:
    """Assistant message of a complete response."""
    role: str = Role.ASSISTANT.value
    content: Optional[str] = None
    tool_calls: Optional[Tuple[ToolCall, ...]] = None
    refusal: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "role": self.role,
            "content": self.content,
            "refusal": self.refusal,
        }
        if self.tool_calls:
            result["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return result


@dataclass(frozen=True)
class Choice:
    """A single completion choice."""
    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "message": self.message.to_dict(),
            "finish_reason": self.finish_reason,
        }


@dataclass(frozen=True)
class ChatCompletion:
    """
    Canonical chat completion response.

    ``raw`` keeps the provider's original JSON for callers that need
    fields the canonical shape does not carry.
    """
    id: str
    model: str = ""
    created: int = field(default_factory=lambda: int(time.time()), compare=False)
    choices: Tuple[Choice, ...] = ()
    usage: Optional[Usage] = None
    object: Literal["chat.completion"] = "chat.completion"
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def message(self) -> ChatMessage:
        """Message of the first choice (empty assistant message if none)."""
        if not self.choices:
            return ChatMessage(content="")
        return self.choices[0].message

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "object": self.object,
            "created": self.created,
            "model": self.model,
            "choices": [c.to_dict() for c in self.choices],
        }
        if self.usage is not None:
            result["usage"] = self.usage.to_dict()
        return result


@dataclass(frozen=True)
class Completion:
    """Legacy text completion with the first choice's text."""
    text: str
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


# ============================================================
# Stream chunks
# ============================================================

@dataclass(frozen=True)
class ChoiceDelta:
    """Incremental message content of one streamed choice."""
    role: Optional[str] = None
    content: Optional[str] = None
    refusal: Optional[str] = None
    tool_calls: Optional[Tuple[ToolCallDelta, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.role is not None:
            result["role"] = self.role
        result["content"] = self.content
        result["refusal"] = self.refusal
        if self.tool_calls:
            result["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return result


@dataclass(frozen=True)
class ChunkChoice:
    """One choice of a streamed chunk."""
    index: int = 0
    delta: ChoiceDelta = field(default_factory=ChoiceDelta)
    finish_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "delta": self.delta.to_dict(),
            "finish_reason": self.finish_reason,
        }


@dataclass(frozen=True)
class ChatCompletionChunk:
    """
    Normalized stream chunk.

    Both providers' stream events are converted to this shape.
    """
    id: str = ""
    model: str = ""
    created: int = field(default_factory=lambda: int(time.time()), compare=False)
    choices: Tuple[ChunkChoice, ...] = ()
    object: Literal["chat.completion.chunk"] = "chat.completion.chunk"
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def delta(self) -> ChoiceDelta:
        """Delta of the first choice (empty if the chunk has no choices)."""
        if not self.choices:
            return ChoiceDelta()
        return self.choices[0].delta

    @property
    def content(self) -> str:
        """Text carried by the first choice, '' when there is none."""
        return self.delta.content or ""

    @property
    def finish_reason(self) -> Optional[str]:
        if not self.choices:
            return None
        return self.choices[0].finish_reason

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "object": self.object,
            "created": self.created,
            "model": self.model,
            "choices": [c.to_dict() for c in self.choices],
        }

    def to_sse(self) -> str:
        """Serialize back to an OpenAI-style SSE line."""
        return f"data: {json.dumps(self.to_dict())}\n\n"


@dataclass(frozen=True)
class CompletionChunk:
    """Normalized legacy-completion stream chunk."""
    text: str
    finish_reason: Optional[str] = None
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)
