"""
llm-fetch - Stream Assembly Pipeline

Wires a provider parser to a normalizer and exposes the result as an
async sequence of normalized chunks.

Two halves:
- ``StreamPipeline``: push side (write/close/abort/cancel) and pull side
  (single-consumer async iteration or non-blocking ``poll``)
- ``NormalizedStream``: lazy iterator that pulls bytes from the transport
  only when no normalized chunk is ready

Produced-but-unconsumed chunks sit in an unbounded asyncio.Queue.
"""

import asyncio
from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable, Optional, Union

from ..core.errors import StreamInterruptedError
from ..core.models import Provider
from ..observability.logging import get_logger
from .normalizer import normalize_anthropic_text_delta, normalize_openai_chunk
from .parsers import create_parser

logger = get_logger(__name__)

Normalizer = Callable[[Any], Any]

DEFAULT_NORMALIZERS = {
    Provider.OPENAI: normalize_openai_chunk,
    Provider.ANTHROPIC: normalize_anthropic_text_delta,
}


class _NotReady:
    def __repr__(self) -> str:
        return "NOT_READY"


# Returned by poll() when nothing is queued yet
NOT_READY = _NotReady()

_END = object()


class _Failure:
    """Queue marker carrying the error that terminated the stream."""

    def __init__(self, error: BaseException):
        self.error = error


class StreamPipeline:
    """
    Parser + normalizer + queue for one response stream.

    Exactly one terminal signal (end sentinel, ``close``, ``abort`` or
    ``cancel``) ends the sequence; everything pushed afterwards is
    ignored.
    """

    def __init__(self, tag: Union[str, Provider], normalizer: Optional[Normalizer] = None):
        self.parser = create_parser(tag, on_event=self._on_event, on_end=self._on_end)
        self.provider = self.parser.provider
        self.normalizer = normalizer or DEFAULT_NORMALIZERS[self.provider]
        self._queue: asyncio.Queue = asyncio.Queue()
        self._terminated = False
        self._consumed = False
        self.events_parsed = 0
        self.events_dropped = 0

    @property
    def ended(self) -> bool:
        """True once a terminal signal has been received."""
        return self._terminated

    # ------------------------------------------------------------
    # Push side
    # ------------------------------------------------------------

    def write(self, chunk: bytes) -> None:
        """Feed one byte chunk from the transport."""
        if self._terminated:
            logger.debug(
                "Ignoring bytes written after stream end",
                provider=self.provider.value,
                bytes=len(chunk)
            )
            return
        self.parser.write(chunk)

    def close(self) -> None:
        """Source exhausted: flush buffered input, then end."""
        if self._terminated:
            return
        self.parser.flush()
        if not self._terminated:
            logger.debug("Stream closed without end sentinel", provider=self.provider.value)
            self._terminate(_END)

    def abort(self, error: BaseException) -> None:
        """End the stream with ``error``; the consumer sees it raised."""
        if self._terminated:
            return
        self.parser.reset()
        logger.warning(
            f"Stream aborted: {error}",
            provider=self.provider.value,
            events_parsed=self.events_parsed
        )
        self._terminate(_Failure(error))

    def cancel(self) -> None:
        """Consumer gave up: discard buffers and end cleanly."""
        if self._terminated:
            return
        self.parser.reset()
        while not self._queue.empty():
            self._queue.get_nowait()
        logger.debug("Stream cancelled", provider=self.provider.value)
        self._terminate(_END)

    def _terminate(self, marker: Any) -> None:
        self._terminated = True
        self._queue.put_nowait(marker)

    def _on_event(self, raw: Any) -> None:
        self.events_parsed += 1
        try:
            value = self.normalizer(raw)
        except Exception:
            self.events_dropped += 1
            logger.exception("Normalizer failed, skipping event", provider=self.provider.value)
            return
        if value is None:
            self.events_dropped += 1
            return
        self._queue.put_nowait(value)

    def _on_end(self) -> None:
        logger.debug(
            "Stream end sentinel received",
            provider=self.provider.value,
            events_parsed=self.events_parsed
        )
        self._terminate(_END)

    # ------------------------------------------------------------
    # Pull side
    # ------------------------------------------------------------

    def _unwrap(self, item: Any) -> Any:
        if item is _END:
            # Keep the end marker so later reads also end
            self._queue.put_nowait(_END)
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            self._queue.put_nowait(_END)
            raise item.error
        return item

    def poll(self) -> Any:
        """
        Next normalized chunk without waiting.

        Returns NOT_READY when nothing is queued, raises StopAsyncIteration
        once the stream has ended and the abort error if it failed.
        """
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return NOT_READY
        return self._unwrap(item)

    def __aiter__(self) -> "StreamPipeline":
        if self._consumed:
            raise RuntimeError("Stream pipeline supports only one consumer")
        self._consumed = True
        return self

    async def __anext__(self) -> Any:
        return self._unwrap(await self._queue.get())


class NormalizedStream:
    """
    Async iterator of normalized chunks read lazily from a byte source.

    Usage:
        async with NormalizedStream(response.aiter_bytes(), pipeline,
                                    on_close=response.aclose) as stream:
            async for chunk in stream:
                print(chunk.content, end="")

    A transport failure after streaming started surfaces as
    StreamInterruptedError. Leaving the ``async with`` block, breaking out
    of ``async for`` or calling ``aclose`` early cancels the stream and
    releases the source.
    """

    def __init__(
        self,
        source: AsyncIterable[bytes],
        pipeline: StreamPipeline,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
        request_id: str = ""
    ):
        self._source: AsyncIterator[bytes] = source.__aiter__()
        self.pipeline = pipeline
        self._on_close = on_close
        self.request_id = request_id
        self.chunks_delivered = 0
        self._released = False
        self._consumed = False

    @property
    def released(self) -> bool:
        """True once the byte source has been released."""
        return self._released

    def __aiter__(self) -> AsyncIterator[Any]:
        if self._consumed:
            raise RuntimeError("Normalized stream supports only one consumer")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Any]:
        # The event loop finalizes an abandoned generator, so a bare
        # ``async for ... break`` still reaches aclose().
        try:
            while True:
                try:
                    item = await self.__anext__()
                except StopAsyncIteration:
                    return
                yield item
        finally:
            await self.aclose()

    async def __anext__(self) -> Any:
        while True:
            item = self.pipeline.poll()
            if item is not NOT_READY:
                self.chunks_delivered += 1
                return item

            try:
                chunk = await self._source.__anext__()
            except StopAsyncIteration:
                self.pipeline.close()
            except Exception as e:
                error = StreamInterruptedError(
                    self.pipeline.provider.value,
                    chunks_delivered=self.chunks_delivered,
                    message=f"Connection lost while streaming: {e}",
                    request_id=self.request_id
                )
                error.__cause__ = e
                self.pipeline.abort(error)
            else:
                try:
                    self.pipeline.write(chunk)
                except Exception as e:
                    self.pipeline.abort(e)

            if self.pipeline.ended:
                await self._release()

    async def aclose(self) -> None:
        """Cancel the stream and release the source."""
        if not self.pipeline.ended:
            logger.info(
                "Stream cancelled by consumer",
                provider=self.pipeline.provider.value,
                request_id=self.request_id,
                chunks_delivered=self.chunks_delivered
            )
        self.pipeline.cancel()
        await self._release()

    async def __aenter__(self) -> "NormalizedStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True

        try:
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                await aclose()
            if self._on_close is not None:
                await self._on_close()
        except Exception as e:
            logger.warning(
                f"Failed to release stream source: {e}",
                provider=self.pipeline.provider.value,
                request_id=self.request_id
            )


def create_stream_pipeline(
    tag: Union[str, Provider],
    normalizer: Optional[Normalizer] = None
) -> StreamPipeline:
    """
    Create a pipeline for a provider wire format.

    Without a normalizer the provider's default chat normalizer is used.

    Raises:
        ValueError: if the tag names no known wire format
    """
    return StreamPipeline(tag, normalizer)
