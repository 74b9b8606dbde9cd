"""
llm-fetch - Line / Event Byte Decoder

Turns byte chunks with arbitrary boundaries into complete text lines
(``LineDecoder``) or blank-line separated event blocks
(``EventBlockDecoder``). A line or block is never emitted twice and never
lost across chunk boundaries.
"""

import codecs
from typing import List


class LineDecoder:
    """
    Incremental bytes -> lines decoder.

    The pending buffer always holds exactly the text of an incomplete
    trailing line; the UTF-8 decoder holds any incomplete multi-byte
    sequence.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text of the incomplete trailing line."""
        return self._buffer

    def decode(self, chunk: bytes) -> List[str]:
        """Decode one chunk, returning the lines it completed."""
        if not chunk:
            return []

        text = self._decoder.decode(chunk)
        parts = text.split("\n")

        # No newline: the whole chunk belongs to the pending line
        if len(parts) == 1:
            self._buffer += parts[0]
            return []

        parts[0] = self._buffer + parts[0]
        # "" when the chunk ended exactly on a newline
        self._buffer = parts.pop()

        return [line.rstrip("\r") for line in parts]

    def flush(self) -> List[str]:
        """
        Emit whatever is still buffered as a final line.

        Called once the byte source is exhausted; content without a
        trailing newline is a complete line, not an error.
        """
        tail = self._decoder.decode(b"", final=True)
        remainder = self._buffer + tail
        self._buffer = ""
        if not remainder:
            return []
        # A multi-byte tail may itself have contained newlines
        return [line.rstrip("\r") for line in remainder.split("\n") if line]

    def reset(self) -> None:
        """Discard buffered content without emitting it."""
        self._decoder.reset()
        self._buffer = ""


class EventBlockDecoder:
    """
    Incremental bytes -> event blocks decoder.

    A block is the list of lines between two blank lines (the
    double-newline separator of SSE). An incomplete trailing block is
    held until the separator arrives.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._lines = LineDecoder(encoding)
        self._block: List[str] = []

    @property
    def pending(self) -> str:
        """Buffered text of the incomplete trailing block."""
        held = self._block + ([self._lines.pending] if self._lines.pending else [])
        return "\n".join(held)

    def decode(self, chunk: bytes) -> List[List[str]]:
        """Decode one chunk, returning the blocks it completed."""
        return self._collect(self._lines.decode(chunk))

    def flush(self) -> List[List[str]]:
        """Emit the held block (if any) as a final block."""
        blocks = self._collect(self._lines.flush())
        if self._block:
            blocks.append(self._block)
            self._block = []
        return blocks

    def reset(self) -> None:
        """Discard buffered content without emitting it."""
        self._lines.reset()
        self._block = []

    def _collect(self, lines: List[str]) -> List[List[str]]:
        blocks = []
        for line in lines:
            if line.strip():
                self._block.append(line)
            elif self._block:
                blocks.append(self._block)
                self._block = []
        return blocks
