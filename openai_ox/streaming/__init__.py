"""
Streaming chat completion support.

- SSE framing and frame classification
- Chunk parsing with inline error reporting
- Producer/consumer stream with cancellation
"""

from .decoder import FrameDecoder, SSEFrameBuffer, parse_chunk
from .models import (
    ChatCompletionChunk,
    ChoiceStreamed,
    DecodedFrame,
    Delta,
    FinishReason,
    StreamItem,
    StreamSettings,
    StreamState,
)
from .stream import ChatStream

__all__ = [
    "ChatCompletionChunk",
    "ChatStream",
    "ChoiceStreamed",
    "DecodedFrame",
    "Delta",
    "FinishReason",
    "FrameDecoder",
    "SSEFrameBuffer",
    "StreamItem",
    "StreamSettings",
    "StreamState",
    "parse_chunk",
]
