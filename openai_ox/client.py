"""
Client facade: one connection pool, one transport, every endpoint.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx

from . import catalog
from .audio.speech import SpeechFormat, SpeechRequest
from .audio.transcription import AudioFormat, TranscriptionFormat, TranscriptionRequest
from .chat.message import Message
from .chat.models import ChatCompletionRequest
from .config import Configuration
from .embeddings import EmbeddingRequest
from .logging_utils import log_operation
from .rate_limiting import LeakyBucketRateLimiter
from .streaming.models import StreamSettings
from .transport import BASE_URL, HttpTransport


class OpenAi:
    """
    Async client for an OpenAI-compatible API.

    The ``httpx.AsyncClient`` connection pool is injected so it can be shared
    across clients; when omitted, the client creates one and closes it in
    ``aclose()``.
    """

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str = BASE_URL,
        rate_limiter: LeakyBucketRateLimiter | None = None,
        stream_settings: StreamSettings | None = None,
    ) -> None:
        self._owns_client = client is None
        self.http_client = client or httpx.AsyncClient()
        self.transport = HttpTransport(
            self.http_client, api_key, base_url=base_url, rate_limiter=rate_limiter
        )
        self.stream_settings = stream_settings or StreamSettings()

    @classmethod
    def from_config(
        cls,
        configuration: Configuration,
        client: httpx.AsyncClient | None = None,
    ) -> OpenAi:
        """Build a client from YAML configuration and environment variables."""
        rate_config = configuration.get_rate_limit_config()
        rate_limiter = LeakyBucketRateLimiter(rate_config) if rate_config else None
        openai = cls(
            configuration.api_key,
            client or configuration.build_http_client(),
            base_url=configuration.get_client_config()["base_url"],
            rate_limiter=rate_limiter,
            stream_settings=configuration.get_streaming_config(),
        )
        openai._owns_client = client is None
        return openai

    def __repr__(self) -> str:
        return (
            f"OpenAi(api_key='[REDACTED]', base_url={self.transport.base_url!r}, "
            f"client={self.http_client!r})"
        )

    def chat_completion(
        self, model: str, messages: list[Message], **options: Any
    ) -> ChatCompletionRequest:
        """Create a chat completion request bound to this client."""
        request = ChatCompletionRequest(model=model, messages=messages, **options)
        return request.bind(self)

    def speech(
        self,
        model: str,
        input: str,
        voice: str,
        response_format: SpeechFormat = SpeechFormat.MP3,
        speed: float | None = None,
    ) -> SpeechRequest:
        request = SpeechRequest(
            model=model,
            input=input,
            voice=voice,
            response_format=response_format,
            speed=speed,
        )
        return request.bind(self)

    def transcription(
        self,
        audio: bytes | str | Path,
        model: str,
        *,
        audio_format: AudioFormat | None = None,
        language: str | None = None,
        prompt: str | None = None,
        response_format: TranscriptionFormat | None = None,
        temperature: float | None = None,
    ) -> TranscriptionRequest:
        return TranscriptionRequest(
            self,
            audio,
            model,
            audio_format=audio_format,
            language=language,
            prompt=prompt,
            response_format=response_format,
            temperature=temperature,
        )

    def embeddings(
        self, model: str, input: list[str], **options: Any
    ) -> EmbeddingRequest:
        request = EmbeddingRequest(model=model, input=input, **options)
        return request.bind(self)

    @log_operation("list_models")
    async def list_models(self) -> catalog.ModelList:
        return await catalog.list_models(self.transport)

    @log_operation("get_model")
    async def get_model(self, model_id: str) -> catalog.Model:
        return await catalog.get_model(self.transport, model_id)

    async def aclose(self) -> None:
        """Close the connection pool if this client created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> OpenAi:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
