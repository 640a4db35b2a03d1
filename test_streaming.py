#!/usr/bin/env python3
"""
End-to-end tests for streamed chat completions over a mocked HTTP transport.
"""

import asyncio
import gc
import json

import httpx
import pytest

from openai_ox import OpenAi
from openai_ox.chat import user
from openai_ox.exceptions import (
    DecodeError,
    FrameEncodingError,
    InvalidRequestError,
    MalformedEventError,
    TransportError,
)
from openai_ox.streaming.models import StreamSettings, StreamState


def sse(content, chunk_id="1"):
    payload = {
        "id": chunk_id,
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "gpt-4o",
        "choices": [{"index": 0, "delta": {"content": content}}],
    }
    return f"data: {json.dumps(payload)}\n\n".encode()


DONE = b"data: [DONE]\n\n"


def streaming_client(frames_factory, settings=None, seen=None):
    """OpenAi client whose transport answers every request with an SSE body."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=frames_factory(),
        )

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAi("sk-test", http_client, stream_settings=settings)


async def open_stream(openai):
    request = openai.chat_completion(model="gpt-4o", messages=[user("Hi")])
    return await request.stream()


async def collect(stream):
    return [item async for item in stream]


async def until_closed(response):
    while not response.is_closed:
        await asyncio.sleep(0.01)


class TestStreamScenarios:
    """Test the documented stream scenarios."""

    @pytest.mark.asyncio
    async def test_single_chunk_then_done(self):
        async def frames():
            yield sse("Hi")
            yield DONE

        stream = await open_stream(streaming_client(frames))
        items = await collect(stream)

        assert len(items) == 1
        assert items[0].ok
        assert items[0].unwrap().choices[0].delta.content == "Hi"
        assert stream.state is StreamState.DONE

    @pytest.mark.asyncio
    async def test_malformed_event_is_inline(self):
        async def frames():
            yield b"not an event"
            yield sse("Hi")
            yield DONE

        stream = await open_stream(streaming_client(frames))
        items = await collect(stream)

        assert len(items) == 2
        assert isinstance(items[0].error, MalformedEventError)
        assert str(items[0].error) == "Invalid event data: not an event"
        assert items[1].unwrap().text == "Hi"
        assert stream.state is StreamState.DONE

    @pytest.mark.asyncio
    async def test_delimited_malformed_event_keeps_following_chunk(self):
        async def frames():
            yield b"not an event\n\n" + sse("after")

        stream = await open_stream(streaming_client(frames))
        items = await collect(stream)

        assert isinstance(items[0].error, MalformedEventError)
        assert items[0].error.text == "not an event\n\n"
        assert items[1].unwrap().text == "after"

    @pytest.mark.asyncio
    async def test_connection_reset_after_two_chunks(self):
        async def frames():
            yield sse("one", "1")
            yield sse("two", "2")
            raise httpx.ReadError("connection reset by peer")

        stream = await open_stream(streaming_client(frames))
        items = await collect(stream)

        assert [item.ok for item in items] == [True, True, False]
        assert items[0].unwrap().text == "one"
        assert items[1].unwrap().text == "two"
        assert isinstance(items[2].error, TransportError)
        assert items[2].error.category == "connection_error"
        assert stream.state is StreamState.ERRORED

        with pytest.raises(TransportError):
            items[2].unwrap()


class TestStreamPolicy:
    """Test filtering, termination and inline error handling."""

    @pytest.mark.asyncio
    async def test_empty_delta_chunks_are_suppressed(self):
        async def frames():
            yield sse("")
            yield sse("hello")
            yield DONE

        stream = await open_stream(streaming_client(frames))
        items = await collect(stream)

        assert [item.unwrap().text for item in items] == ["hello"]
        assert stream.get_stats()["suppressed"] == 1

    @pytest.mark.asyncio
    async def test_suppression_can_be_disabled(self):
        async def frames():
            yield sse("")
            yield sse("hello")

        settings = StreamSettings(suppress_empty_deltas=False)
        stream = await open_stream(streaming_client(frames, settings))
        items = await collect(stream)

        assert [item.unwrap().text for item in items] == ["", "hello"]

    @pytest.mark.asyncio
    async def test_decode_errors_are_never_suppressed(self):
        async def frames():
            yield b"data: {not json}\n\n"
            yield sse("ok")
            yield DONE

        stream = await open_stream(streaming_client(frames))
        items = await collect(stream)

        assert isinstance(items[0].error, DecodeError)
        assert items[1].unwrap().text == "ok"

    @pytest.mark.asyncio
    async def test_invalid_utf8_frame_does_not_end_stream(self):
        async def frames():
            yield b"data: \xff\n\n"
            yield sse("still here")

        stream = await open_stream(streaming_client(frames))
        items = await collect(stream)

        assert isinstance(items[0].error, FrameEncodingError)
        assert items[1].unwrap().text == "still here"
        assert stream.state is StreamState.DONE

    @pytest.mark.asyncio
    async def test_empty_frames_are_ignored(self):
        async def frames():
            yield b""
            yield sse("x")
            yield b""

        stream = await open_stream(streaming_client(frames))
        items = await collect(stream)

        assert [item.unwrap().text for item in items] == ["x"]

    @pytest.mark.asyncio
    async def test_frames_split_across_reads(self):
        whole = sse("café") + DONE

        async def frames():
            for i in range(0, len(whole), 7):
                yield whole[i:i + 7]

        stream = await open_stream(streaming_client(frames))
        items = await collect(stream)

        assert [item.unwrap().text for item in items] == ["café"]

    @pytest.mark.asyncio
    async def test_done_stops_reading_the_connection(self):
        closed = asyncio.Event()

        async def frames():
            try:
                yield sse("Hi")
                yield DONE
                await asyncio.Event().wait()
                yield sse("never")
            finally:
                closed.set()

        stream = await open_stream(streaming_client(frames))
        items = await asyncio.wait_for(collect(stream), timeout=2.0)

        assert [item.unwrap().text for item in items] == ["Hi"]
        assert stream.state is StreamState.DONE
        await asyncio.wait_for(closed.wait(), timeout=2.0)

    @pytest.mark.asyncio
    async def test_order_preserved_with_small_channel(self):
        async def frames():
            for i in range(20):
                yield sse(str(i), str(i))
            yield DONE

        settings = StreamSettings(channel_size=1)
        stream = await open_stream(streaming_client(frames, settings))
        items = await collect(stream)

        assert [item.unwrap().text for item in items] == [str(i) for i in range(20)]

    @pytest.mark.asyncio
    async def test_exhausted_stream_is_not_restartable(self):
        async def frames():
            yield sse("once")

        stream = await open_stream(streaming_client(frames))
        assert len(await collect(stream)) == 1
        assert await collect(stream) == []


class TestStreamLifecycle:
    """Test connection setup, cancellation and request shape."""

    @pytest.mark.asyncio
    async def test_request_body_and_auth(self):
        seen = []

        async def frames():
            yield DONE

        openai = streaming_client(frames, seen=seen)
        stream = await open_stream(openai)
        await collect(stream)

        request = seen[0]
        body = json.loads(request.content)
        assert request.method == "POST"
        assert request.url == "https://api.openai.com/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-test"
        assert request.headers["accept"] == "text/event-stream"
        assert body["stream"] is True
        assert body["model"] == "gpt-4o"
        assert body["messages"] == [{"role": "user", "content": "Hi"}]

    @pytest.mark.asyncio
    async def test_error_status_raises_before_streaming(self):
        def handler(request):
            return httpx.Response(
                401,
                json={"error": {
                    "message": "Incorrect API key provided",
                    "param": None,
                    "code": "invalid_api_key",
                }},
            )

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        openai = OpenAi("sk-bad", http_client)

        with pytest.raises(InvalidRequestError) as exc_info:
            await open_stream(openai)

        assert exc_info.value.message == "Incorrect API key provided"
        assert exc_info.value.code == "invalid_api_key"
        assert exc_info.value.param is None
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_connect_failure_is_a_stream_item(self):
        def handler(request):
            raise httpx.ConnectError("name resolution failed")

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        stream = await open_stream(OpenAi("sk-test", http_client))
        items = await collect(stream)

        assert len(items) == 1
        assert isinstance(items[0].error, TransportError)
        assert stream.state is StreamState.ERRORED

    @pytest.mark.asyncio
    async def test_aclose_cancels_producer_and_closes_connection(self):
        closed = asyncio.Event()

        async def frames():
            try:
                yield sse("first")
                await asyncio.Event().wait()
                yield sse("never")
            finally:
                closed.set()

        stream = await open_stream(streaming_client(frames))
        first = await asyncio.wait_for(stream.__anext__(), timeout=2.0)
        assert first.unwrap().text == "first"

        await stream.aclose()

        assert stream.state is StreamState.DONE
        assert stream._producer.done()
        assert stream._response.is_closed
        await asyncio.wait_for(closed.wait(), timeout=2.0)

        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_dropped_stream_releases_connection(self):
        responses = []
        closed = asyncio.Event()

        async def frames():
            try:
                yield sse("first")
                await asyncio.Event().wait()
            finally:
                closed.set()

        def handler(request):
            response = httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=frames(),
            )
            responses.append(response)
            return response

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        stream = await open_stream(OpenAi("sk-test", http_client))
        producer = stream._producer
        await asyncio.sleep(0)

        del stream
        gc.collect()

        await asyncio.wait_for(until_closed(responses[0]), timeout=2.0)
        await asyncio.wait_for(closed.wait(), timeout=2.0)
        await asyncio.wait({producer}, timeout=2.0)
        assert producer.cancelled()

    @pytest.mark.asyncio
    async def test_dropped_stream_before_producer_runs(self):
        responses = []

        async def frames():
            yield sse("first")

        def handler(request):
            response = httpx.Response(200, content=frames())
            responses.append(response)
            return response

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        stream = await open_stream(OpenAi("sk-test", http_client))

        del stream
        gc.collect()

        await asyncio.wait_for(until_closed(responses[0]), timeout=2.0)

    @pytest.mark.asyncio
    async def test_context_manager_closes_stream(self):
        async def frames():
            yield sse("a")
            await asyncio.Event().wait()

        openai = streaming_client(frames)
        async with await open_stream(openai) as stream:
            async for item in stream:
                assert item.unwrap().text == "a"
                break

        assert stream.state is StreamState.DONE
        assert stream._response.is_closed

    @pytest.mark.asyncio
    async def test_stream_cannot_be_opened_twice(self):
        async def frames():
            yield DONE

        stream = await open_stream(streaming_client(frames))
        with pytest.raises(RuntimeError):
            await stream.open()
        await stream.aclose()
