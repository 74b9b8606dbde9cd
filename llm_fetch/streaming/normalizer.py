"""
llm-fetch - Response Normalizers

Map provider payloads onto the canonical OpenAI-shaped types.

Streaming normalizers take one raw event from a parser and return a
chunk (or None to drop the event). The non-streaming helpers translate
complete Anthropic messages and outbound request params.
"""

import uuid
from typing import Any, Dict, List, Optional

from ..core.models import (
    ChatCompletion,
    ChatCompletionChunk,
    ChatMessage,
    Choice,
    ChoiceDelta,
    ChunkChoice,
    Completion,
    CompletionChunk,
    Role,
    ToolCall,
    ToolCallDelta,
    Usage,
)


# ============================================================
# OpenAI
# ============================================================

def _tool_call_deltas(items: Optional[List[Dict[str, Any]]]):
    if not items:
        return None
    deltas = []
    for position, tc in enumerate(items):
        function = tc.get("function") or {}
        deltas.append(ToolCallDelta(
            index=tc.get("index", position),
            id=tc.get("id"),
            type=tc.get("type"),
            function_name=function.get("name"),
            function_arguments=function.get("arguments"),
        ))
    return tuple(deltas)


def normalize_openai_chunk(raw: Dict[str, Any]) -> ChatCompletionChunk:
    """
    Normalize one OpenAI chat stream chunk.

    OpenAI chunks already have the target shape, so this is mostly a
    typed passthrough of every choice.
    """
    choices = []
    for position, choice in enumerate(raw.get("choices") or []):
        delta = choice.get("delta") or {}
        choices.append(ChunkChoice(
            index=choice.get("index", position),
            delta=ChoiceDelta(
                role=delta.get("role"),
                content=delta.get("content"),
                refusal=delta.get("refusal"),
                tool_calls=_tool_call_deltas(delta.get("tool_calls")),
            ),
            finish_reason=choice.get("finish_reason"),
        ))

    kwargs: Dict[str, Any] = {}
    if raw.get("created") is not None:
        kwargs["created"] = raw["created"]

    return ChatCompletionChunk(
        id=raw.get("id", ""),
        model=raw.get("model", ""),
        choices=tuple(choices),
        raw=raw,
        **kwargs
    )


def normalize_openai_completion_chunk(raw: Dict[str, Any]) -> CompletionChunk:
    """Normalize one legacy completions stream chunk (first choice only)."""
    choices = raw.get("choices") or [{}]
    first = choices[0]
    return CompletionChunk(
        text=first.get("text") or "",
        finish_reason=first.get("finish_reason"),
        raw=raw,
    )


def openai_completion_to_text(data: Dict[str, Any]) -> Completion:
    """Extract the first choice's text of a complete legacy completion."""
    choices = data.get("choices") or [{}]
    return Completion(text=choices[0].get("text") or "", raw=data)


def openai_response_to_chat_completion(data: Dict[str, Any]) -> ChatCompletion:
    """Type a complete OpenAI chat completion response."""
    choices = []
    for position, choice in enumerate(data.get("choices") or []):
        message = choice.get("message") or {}
        tool_calls = None
        if message.get("tool_calls"):
            tool_calls = tuple(
                ToolCall.from_dict(tc) for tc in message["tool_calls"]
            )
        choices.append(Choice(
            index=choice.get("index", position),
            message=ChatMessage(
                role=message.get("role", Role.ASSISTANT.value),
                content=message.get("content"),
                tool_calls=tool_calls,
                refusal=message.get("refusal"),
            ),
            finish_reason=choice.get("finish_reason"),
        ))

    usage = None
    usage_data = data.get("usage")
    if usage_data:
        usage = Usage(
            prompt_tokens=usage_data.get("prompt_tokens", 0),
            completion_tokens=usage_data.get("completion_tokens", 0),
            total_tokens=usage_data.get("total_tokens", 0),
        )

    kwargs: Dict[str, Any] = {}
    if data.get("created") is not None:
        kwargs["created"] = data["created"]

    return ChatCompletion(
        id=data.get("id", ""),
        model=data.get("model", ""),
        choices=tuple(choices),
        usage=usage,
        raw=data,
        **kwargs
    )


# ============================================================
# Anthropic
# ============================================================

def normalize_anthropic_text_delta(
    delta: Dict[str, Any],
    *,
    model: str = "",
    chunk_id: Optional[str] = None
) -> ChatCompletionChunk:
    """
    Convert an Anthropic ``text_delta`` into a canonical chunk.

    The chunk has exactly one choice at index 0 whose delta is
    ``{"role": "assistant", "content": <text>, "refusal": None}``.
    """
    return ChatCompletionChunk(
        id=chunk_id or f"chatcmpl-{uuid.uuid4().hex[:12]}",
        model=model,
        choices=(
            ChunkChoice(
                index=0,
                delta=ChoiceDelta(
                    role=Role.ASSISTANT.value,
                    content=delta.get("text", ""),
                    refusal=None,
                ),
                finish_reason=None,
            ),
        ),
        raw=delta,
    )


def convert_anthropic_usage(usage: Optional[Dict[str, Any]]) -> Usage:
    """Rename input/output token counts and compute the total."""
    usage = usage or {}
    return Usage.of(
        usage.get("input_tokens", 0) or 0,
        usage.get("output_tokens", 0) or 0,
    )


def anthropic_message_to_chat_completion(data: Dict[str, Any]) -> ChatCompletion:
    """
    Translate a complete Anthropic message into a chat completion.

    - the first ``text`` block becomes the message content
    - every ``tool_use`` block becomes a function tool call whose
      arguments are the compact JSON of its input
    - ``stop_reason`` is carried over unchanged as ``finish_reason``
    """
    content = None
    tool_calls = []

    for block in data.get("content") or []:
        block_type = block.get("type")
        if block_type == "text" and content is None:
            content = block.get("text", "")
        elif block_type == "tool_use":
            tool_calls.append(ToolCall.from_tool_use(block))

    message = ChatMessage(
        role=Role.ASSISTANT.value,
        content=content,
        tool_calls=tuple(tool_calls) or None,
        refusal=None,
    )

    return ChatCompletion(
        id=data.get("id", ""),
        model=data.get("model", ""),
        choices=(Choice(index=0, message=message, finish_reason=data.get("stop_reason")),),
        usage=convert_anthropic_usage(data.get("usage")),
        raw=data,
    )


def filter_system_messages(params: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``params`` with every system-role message removed."""
    result = dict(params)
    if "messages" in params:
        result["messages"] = [
            m for m in params["messages"]
            if m.get("role") != Role.SYSTEM.value
        ]
    return result


def to_anthropic_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Outbound Anthropic request params (system messages dropped)."""
    return filter_system_messages(params)
