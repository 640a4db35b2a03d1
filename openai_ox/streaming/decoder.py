"""
Server-sent event framing, frame classification and chunk parsing.
"""

from __future__ import annotations

from pydantic import ValidationError

from ..exceptions import DecodeError, FrameEncodingError, MalformedEventError
from .models import ChatCompletionChunk, DecodedFrame

EVENT_DELIMITER = "\n\n"
DATA_PREFIX = "data: "
DONE_MESSAGE = "data: [DONE]"


class SSEFrameBuffer:
    """
    Re-aligns network reads on event boundaries.

    Reads can end anywhere, including inside a multi-byte UTF-8 sequence.
    A trailing ``data: `` event is held back until its blank-line delimiter
    arrives. Any other undelimited tail is handed out at once so the decoder
    can report it. Stray newlines between events are dropped.
    """

    _delimiter = EVENT_DELIMITER.encode()
    _prefix = DATA_PREFIX.encode()

    def __init__(self) -> None:
        self._buffer = bytearray()

    def _is_pending_event(self, tail: bytes) -> bool:
        return tail.startswith(self._prefix) or self._prefix.startswith(tail)

    def feed(self, data: bytes) -> list[bytes]:
        """Add bytes from the network and return the frames they complete."""
        self._buffer.extend(data)

        frames = []
        start = 0
        while True:
            while self._buffer[start:start + 1] == b"\n":
                start += 1
            index = self._buffer.find(self._delimiter, start)
            if index == -1:
                break
            end = index + len(self._delimiter)
            frames.append(bytes(self._buffer[start:end]))
            start = end
        del self._buffer[:start]

        if self._buffer and not self._is_pending_event(bytes(self._buffer)):
            frames.append(bytes(self._buffer))
            self._buffer.clear()
        return frames

    def flush(self) -> bytes:
        """Return whatever is left once the connection has closed."""
        tail = bytes(self._buffer)
        self._buffer.clear()
        return tail


class FrameDecoder:
    """Classifies raw frames into candidate events, the sentinel, or errors."""

    def __init__(self) -> None:
        self.stats = {
            "frames": 0,
            "events": 0,
            "malformed": 0,
            "encoding_errors": 0,
        }

    def decode(self, frame: bytes) -> DecodedFrame:
        """
        Classify one raw frame.

        - empty text yields nothing
        - text starting with ``data: `` is split into sub-messages; empty ones
          and the ``[DONE]`` sentinel are dropped, the rest lose their prefix
        - any other text is a malformed event
        """
        self.stats["frames"] += 1

        try:
            text = frame.decode("utf-8")
        except UnicodeDecodeError as e:
            self.stats["encoding_errors"] += 1
            return DecodedFrame(error=FrameEncodingError(frame, str(e)))

        if text == "":
            return DecodedFrame()

        if not text.startswith(DATA_PREFIX):
            self.stats["malformed"] += 1
            return DecodedFrame(error=MalformedEventError(text))

        events = []
        done = False
        for message in text.split(EVENT_DELIMITER):
            if not message:
                continue
            if message == DONE_MESSAGE:
                done = True
                continue
            if message.startswith(DATA_PREFIX):
                events.append(message[len(DATA_PREFIX):])

        self.stats["events"] += len(events)
        return DecodedFrame(events=tuple(events), done=done)

    def get_stats(self) -> dict[str, int]:
        return self.stats.copy()


def parse_chunk(payload: str) -> ChatCompletionChunk:
    """
    Deserialize one candidate event into a chunk.

    Raises:
        DecodeError: If the payload is not JSON or not shaped like a chunk
    """
    try:
        return ChatCompletionChunk.model_validate_json(payload)
    except ValidationError as e:
        reason = f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}"
        raise DecodeError(payload, reason) from e
