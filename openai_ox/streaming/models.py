"""
Streaming dataclasses and the wire shape of a streamed chat chunk.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, cast

from pydantic import BaseModel

from ..exceptions import ApiRequestError
from ..models import Usage


class FinishReason(str, Enum):
    """Why the model stopped generating."""
    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content_filter"
    TOOL_CALLS = "tool_calls"
    FUNCTION_CALL = "function_call"


class Delta(BaseModel):
    role: str | None = None
    content: str | None = None


class ChoiceStreamed(BaseModel):
    index: int
    delta: Delta
    finish_reason: FinishReason | None = None
    logprobs: dict[str, Any] | None = None


class ChatCompletionChunk(BaseModel):
    """One incremental unit of a streamed chat completion."""
    id: str
    object: str
    created: int
    model: str
    system_fingerprint: str | None = None
    choices: list[ChoiceStreamed]
    usage: Usage | None = None

    @property
    def text(self) -> str:
        """Delta text of every choice, concatenated in order."""
        return "".join(choice.delta.content or "" for choice in self.choices)

    def is_empty_delta(self) -> bool:
        """True when every choice carries content that is present but empty."""
        return bool(self.choices) and all(
            choice.delta.content is not None and choice.delta.content == ""
            for choice in self.choices
        )


class StreamState(Enum):
    """Lifecycle of one stream."""
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    DONE = "done"
    ERRORED = "errored"


@dataclass(frozen=True)
class StreamSettings:
    """Per-client streaming policy."""
    channel_size: int = 64  # 0 means unbounded
    suppress_empty_deltas: bool = True


@dataclass(frozen=True)
class DecodedFrame:
    """Result of classifying one raw frame."""
    events: tuple[str, ...] = ()
    error: ApiRequestError | None = None
    done: bool = False


@dataclass(frozen=True)
class StreamItem:
    """A decoded chunk or the failure that took its place."""
    chunk: ChatCompletionChunk | None = None
    error: ApiRequestError | None = None

    def __post_init__(self) -> None:
        if (self.chunk is None) == (self.error is None):
            raise ValueError("StreamItem holds exactly one of chunk or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> ChatCompletionChunk:
        """Return the chunk or raise the error."""
        if self.error is not None:
            raise self.error
        return cast(ChatCompletionChunk, self.chunk)
