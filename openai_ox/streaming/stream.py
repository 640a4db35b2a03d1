"""
Streamed chat completion: producer task, hand-off channel and consumer.

The producer task reads raw frames from the open response and pushes them
into a bounded ``asyncio.Queue``. The consumer side decodes, parses and
filters them into ``StreamItem``s as the caller pulls.
"""

from __future__ import annotations

import asyncio
import contextlib
import uuid
import weakref
from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, cast

import httpx

from ..exceptions import DecodeError, TransportError
from ..logging_utils import ContextualLogger
from .decoder import FrameDecoder, parse_chunk
from .models import StreamItem, StreamSettings, StreamState

if TYPE_CHECKING:                                        # pragma: no cover
    from ..transport import ApiRequest, HttpTransport

# Marks a graceful end of the response body
_EOF = object()

# Keeps connection cleanup tasks of abandoned streams alive until they finish
_cleanup_tasks: set[asyncio.Task[None]] = set()


def _release_abandoned(producer: asyncio.Task[None], response: httpx.Response) -> None:
    """Stop the producer of a stream that was dropped without being closed."""
    loop = producer.get_loop()
    if loop.is_closed():
        return
    producer.cancel()
    if response.is_closed:
        return
    task = loop.create_task(response.aclose())
    _cleanup_tasks.add(task)
    task.add_done_callback(_cleanup_tasks.discard)


class ChatStream:
    """
    Lazy, single-consumer sequence of ``StreamItem``s for one request.

    Use ``async with`` or call ``aclose()`` to release the connection early.
    The stream is not restartable.
    """

    def __init__(
        self,
        transport: HttpTransport,
        request: ApiRequest,
        settings: StreamSettings | None = None,
        *,
        model: str | None = None,
    ) -> None:
        self.settings = settings or StreamSettings()
        self.decoder = FrameDecoder()
        self._transport = transport
        self._request = request
        self._channel: asyncio.Queue[object] = asyncio.Queue(
            maxsize=self.settings.channel_size
        )
        self._response: httpx.Response | None = None
        self._producer: asyncio.Task[None] | None = None
        self._finalizer: weakref.finalize | None = None
        self._state = StreamState.IDLE
        self._items = self._assemble()
        self._logger = ContextualLogger({
            "stream_id": uuid.uuid4().hex[:12],
            "model": model,
        })
        self.stats = {
            "chunks": 0,
            "suppressed": 0,
            "errors": 0,
        }

    @property
    def state(self) -> StreamState:
        return self._state

    def _set_state(self, state: StreamState) -> None:
        self._logger.debug(
            "Stream state changed", previous=self._state.value, current=state.value
        )
        self._state = state

    async def open(self) -> ChatStream:
        """
        Connect and start the producer task.

        A transport failure while connecting becomes the first and only item
        of the stream. A non-2xx response is raised here.

        Raises:
            InvalidRequestError: On non-2xx with an error envelope
            UnexpectedResponseError: On non-2xx without an error envelope
        """
        if self._state is not StreamState.IDLE:
            raise RuntimeError("stream has already been opened")

        self._set_state(StreamState.CONNECTING)
        try:
            self._response = await self._transport.connect(self._request)
        except TransportError as e:
            self._channel.put_nowait(e)
            return self
        except Exception:
            self._set_state(StreamState.ERRORED)
            raise

        self._set_state(StreamState.STREAMING)
        self._producer = asyncio.create_task(
            self._pump(self._transport, self._response, self._channel)
        )
        self._finalizer = weakref.finalize(
            self, _release_abandoned, self._producer, self._response
        )
        return self

    @staticmethod
    async def _pump(
        transport: HttpTransport,
        response: httpx.Response,
        channel: asyncio.Queue[object],
    ) -> None:
        """Forward raw frames into the channel until the body ends."""
        try:
            async with contextlib.aclosing(transport.iter_frames(response)) as frames:
                async for frame in frames:
                    await channel.put(frame)
        except Exception as e:
            # The consumer decides whether this ends the stream or is raised
            await channel.put(e)
            return
        await channel.put(_EOF)

    async def _assemble(self) -> AsyncGenerator[StreamItem]:
        try:
            while True:
                message = await self._channel.get()

                if message is _EOF:
                    self._set_state(StreamState.DONE)
                    return

                if isinstance(message, TransportError):
                    self.stats["errors"] += 1
                    self._set_state(StreamState.ERRORED)
                    self._logger.error(
                        "Stream terminated by transport failure",
                        error_category=message.category,
                        error_message=str(message),
                    )
                    yield StreamItem(error=message)
                    return

                if isinstance(message, BaseException):
                    self._set_state(StreamState.ERRORED)
                    raise message

                decoded = self.decoder.decode(cast(bytes, message))

                if decoded.error is not None:
                    self.stats["errors"] += 1
                    self._logger.warning(
                        "Skipping undecodable frame",
                        error_type=type(decoded.error).__name__,
                        error_message=str(decoded.error),
                    )
                    yield StreamItem(error=decoded.error)

                for payload in decoded.events:
                    try:
                        chunk = parse_chunk(payload)
                    except DecodeError as e:
                        self.stats["errors"] += 1
                        self._logger.warning(
                            "Skipping unparseable chunk", error_message=str(e)
                        )
                        yield StreamItem(error=e)
                        continue

                    if self.settings.suppress_empty_deltas and chunk.is_empty_delta():
                        self.stats["suppressed"] += 1
                        continue

                    self.stats["chunks"] += 1
                    yield StreamItem(chunk=chunk)

                if decoded.done:
                    self._set_state(StreamState.DONE)
                    return
        finally:
            await self._shutdown()

    async def _shutdown(self) -> None:
        """Stop the producer and release the connection. Idempotent."""
        if self._finalizer is not None:
            self._finalizer.detach()

        if self._producer is not None and not self._producer.done():
            self._producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._producer

        if self._response is not None:
            await self._response.aclose()

        if self._state in (
            StreamState.IDLE, StreamState.CONNECTING, StreamState.STREAMING
        ):
            self._set_state(StreamState.DONE)

    def __aiter__(self) -> ChatStream:
        return self

    async def __anext__(self) -> StreamItem:
        return await self._items.__anext__()

    async def aclose(self) -> None:
        """Cancel the stream and close the underlying connection."""
        await self._items.aclose()
        await self._shutdown()

    async def __aenter__(self) -> ChatStream:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def get_stats(self) -> dict[str, int]:
        """Get streaming statistics for monitoring."""
        return {**self.decoder.get_stats(), **self.stats}
