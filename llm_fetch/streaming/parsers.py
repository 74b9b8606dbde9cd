"""
llm-fetch - Provider Event Parsers

Consume raw byte chunks and emit one raw JSON event per logical SSE
event, plus a single end signal.

Two wire formats are understood:
- OpenAI:    ``data: <json>\\n`` lines, terminated by ``data: [DONE]``
- Anthropic: ``event: <type>\\ndata: <json>\\n\\n`` blocks, terminated by
  ``event: message_stop``

The variant is always chosen from an explicit provider tag, never by
sniffing the content.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..core.models import Provider
from ..observability.logging import get_logger
from .decoder import EventBlockDecoder, LineDecoder

logger = get_logger(__name__)

EventCallback = Callable[[Any], None]
EndCallback = Callable[[], None]


def _split_field(line: str) -> Optional[Tuple[str, str]]:
    """Split ``name: value`` at the first colon; None if there is no colon."""
    name, sep, value = line.partition(":")
    if not sep:
        return None
    return name.strip(), value.strip()


def _noop_event(raw: Any) -> None:
    pass


def _noop_end() -> None:
    pass


class EventParser(ABC):
    """
    Base class for provider stream parsers.

    A parser owns its decoder buffer. Once the end signal has fired the
    parser is ``ended`` and every further write is ignored.
    """

    provider: Provider

    def __init__(
        self,
        on_event: Optional[EventCallback] = None,
        on_end: Optional[EndCallback] = None
    ):
        self.on_event: EventCallback = on_event or _noop_event
        self.on_end: EndCallback = on_end or _noop_end
        self.ended = False

    def write(self, chunk: bytes) -> None:
        """Feed one byte chunk; callbacks fire synchronously."""
        if self.ended:
            return
        self._process(chunk)

    def flush(self) -> None:
        """Process whatever is still buffered once the source is exhausted."""
        if self.ended:
            return
        self._flush()

    def _end(self) -> None:
        if self.ended:
            return
        self.ended = True
        self.on_end()

    @abstractmethod
    def _process(self, chunk: bytes) -> None:
        pass

    @abstractmethod
    def _flush(self) -> None:
        pass

    @abstractmethod
    def reset(self) -> None:
        """Discard buffered input without processing it."""
        pass


# ============================================================
# OpenAI
# ============================================================

class OpenAISSEParser(EventParser):
    """
    Line-oriented parser for OpenAI streams.

    Only ``data`` fields are considered; comments, ``event:`` names and
    retry directives are dropped. A line that is not valid JSON is logged
    and skipped without ending the stream.
    """

    provider = Provider.OPENAI
    DONE = "[DONE]"

    def __init__(
        self,
        on_event: Optional[EventCallback] = None,
        on_end: Optional[EndCallback] = None
    ):
        super().__init__(on_event, on_end)
        self._decoder = LineDecoder()

    def _process(self, chunk: bytes) -> None:
        self._handle_lines(self._decoder.decode(chunk))

    def _flush(self) -> None:
        self._handle_lines(self._decoder.flush())

    def reset(self) -> None:
        self._decoder.reset()

    def _handle_lines(self, lines: List[str]) -> None:
        for line in lines:
            if self.ended:
                return
            self._handle_line(line.strip())

    def _handle_line(self, line: str) -> None:
        if not line:
            return

        parsed = _split_field(line)
        if parsed is None:
            return
        name, value = parsed
        if name != "data" or not value:
            return

        if value == self.DONE:
            self._end()
            return

        try:
            raw = json.loads(value)
        except (ValueError, RecursionError) as e:
            logger.warning(
                f"Skipping malformed stream event: {e}",
                provider=self.provider.value,
                line=value[:200]
            )
            return

        self.on_event(raw)


# ============================================================
# Anthropic
# ============================================================

class AnthropicSSEParser(EventParser):
    """
    Block-oriented parser for Anthropic streams.

    Only text deltas carry content: for a ``content_block_delta`` whose
    ``delta.type`` is ``text_delta`` the delta object is handed to
    ``on_event``. ``message_stop`` ends the stream. Every other event
    (``message_start``, ``ping``, tool-input deltas, ``error``...) is
    ignored.
    """

    provider = Provider.ANTHROPIC

    def __init__(
        self,
        on_event: Optional[EventCallback] = None,
        on_end: Optional[EndCallback] = None
    ):
        super().__init__(on_event, on_end)
        self._decoder = EventBlockDecoder()

    def _process(self, chunk: bytes) -> None:
        self._handle_blocks(self._decoder.decode(chunk))

    def _flush(self) -> None:
        self._handle_blocks(self._decoder.flush())

    def reset(self) -> None:
        self._decoder.reset()

    def _handle_blocks(self, blocks: List[List[str]]) -> None:
        for block in blocks:
            if self.ended:
                return
            try:
                self._handle_block(block)
            except (ValueError, TypeError, AttributeError, RecursionError) as e:
                logger.warning(
                    f"Skipping malformed stream event: {e}",
                    provider=self.provider.value,
                    block="\n".join(block)[:200]
                )

    def _handle_block(self, block: List[str]) -> None:
        fields: Dict[str, str] = {}
        for line in block:
            parsed = _split_field(line.strip())
            if parsed is not None:
                fields.setdefault(*parsed)

        event_type = fields.get("event")

        if event_type == "message_stop":
            self._end()
            return

        if event_type != "content_block_delta":
            return

        data = json.loads(fields.get("data", ""))
        delta = data.get("delta")
        if isinstance(delta, dict) and delta.get("type") == "text_delta":
            self.on_event(delta)


# ============================================================
# Factory
# ============================================================

PARSERS = {
    Provider.OPENAI: OpenAISSEParser,
    Provider.ANTHROPIC: AnthropicSSEParser,
}


def create_parser(
    tag: Union[str, Provider],
    on_event: Optional[EventCallback] = None,
    on_end: Optional[EndCallback] = None
) -> EventParser:
    """
    Create the parser for a provider tag.

    Raises:
        ValueError: if the tag names no known wire format
    """
    try:
        provider = tag if isinstance(tag, Provider) else Provider(str(tag).lower().strip())
    except ValueError:
        raise ValueError(f"Unsupported stream format: {tag}") from None
    return PARSERS[provider](on_event, on_end)
