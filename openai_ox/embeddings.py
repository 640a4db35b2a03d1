"""
Embedding requests.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, PrivateAttr

from .logging_utils import log_operation
from .models import parse_response
from .transport import ApiRequest, JsonBody

API_URL = "v1/embeddings"


class EmbeddingData(BaseModel):
    """Embedding of one input text."""
    object: str
    embedding: list[float]
    index: int


class EmbeddingUsage(BaseModel):
    prompt_tokens: int
    total_tokens: int


class EmbeddingResponse(BaseModel):
    object: str
    data: list[EmbeddingData]
    model: str
    usage: EmbeddingUsage

    def vectors(self) -> list[list[float]]:
        """Embeddings ordered by input index."""
        return [item.embedding for item in sorted(self.data, key=lambda d: d.index)]


class EmbeddingRequest(BaseModel):
    model: str
    input: list[str]
    user: str | None = None
    encoding_format: Literal["float"] | None = None
    dimensions: int | None = None

    _openai: Any = PrivateAttr(default=None)

    def bind(self, openai: Any) -> EmbeddingRequest:
        self._openai = openai
        return self

    @log_operation("embeddings")
    async def send(self) -> EmbeddingResponse:
        if self._openai is None:
            raise RuntimeError("request is not bound to a client; use OpenAi.embeddings()")
        payload = self.model_dump(mode="json", exclude_none=True)
        raw = await self._openai.transport.send(
            ApiRequest("POST", API_URL, JsonBody(payload))
        )
        return parse_response(EmbeddingResponse, raw)
