"""
Wire models shared by every endpoint.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from .exceptions import UnexpectedResponseError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_response(model_type: type[ModelT], raw: bytes) -> ModelT:
    """
    Decode a successful response body.

    Raises:
        UnexpectedResponseError: If the body does not match ``model_type``
    """
    try:
        return model_type.model_validate_json(raw)
    except ValidationError as e:
        raise UnexpectedResponseError(raw.decode("utf-8", errors="replace")) from e


class ApiErrorDetail(BaseModel):
    """Body of the ``error`` member of a failed response."""
    message: str
    param: str | None = None
    code: str | None = None
    type: str | None = None


class ErrorResponse(BaseModel):
    """Error envelope returned with non-2xx responses."""
    error: ApiErrorDetail


class CompletionTokensDetails(BaseModel):
    accepted_prediction_tokens: int = 0
    audio_tokens: int = 0
    reasoning_tokens: int = 0
    rejected_prediction_tokens: int = 0


class PromptTokensDetails(BaseModel):
    audio_tokens: int = 0
    cached_tokens: int = 0


class Usage(BaseModel):
    """Token usage statistics."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    completion_tokens_details: CompletionTokensDetails | None = None
    prompt_tokens_details: PromptTokensDetails | None = None
