"""
Typed async client for OpenAI-compatible generative AI APIs.

This package provides:
- Chat completion, with streamed chunks delivered as a lazy async sequence
- Speech synthesis and transcription
- Embeddings and model listing
- Client-side leaky bucket rate limiting and token counting
"""

from __future__ import annotations

from .catalog import Model, ModelList
from .chat import (
    AssistantMessage,
    ChatCompletionRequest,
    ChatCompletionResponse,
    Message,
    SystemMessage,
    ToolMessage,
    UserMessage,
)
from .client import OpenAi
from .config import Configuration
from .embeddings import EmbeddingRequest, EmbeddingResponse
from .exceptions import (
    ApiRequestError,
    DecodeError,
    FrameEncodingError,
    InvalidRequestError,
    MalformedEventError,
    TransportError,
    UnexpectedResponseError,
)
from .rate_limiting import LeakyBucketRateLimiter, RateLimitConfig
from .streaming import (
    ChatCompletionChunk,
    ChatStream,
    FinishReason,
    StreamItem,
    StreamSettings,
    StreamState,
)

__all__ = [
    "ApiRequestError",
    "AssistantMessage",
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatStream",
    "Configuration",
    "DecodeError",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "FinishReason",
    "FrameEncodingError",
    "InvalidRequestError",
    "LeakyBucketRateLimiter",
    "MalformedEventError",
    "Message",
    "Model",
    "ModelList",
    "OpenAi",
    "RateLimitConfig",
    "StreamItem",
    "StreamSettings",
    "StreamState",
    "SystemMessage",
    "ToolMessage",
    "TransportError",
    "UnexpectedResponseError",
    "UserMessage",
]
