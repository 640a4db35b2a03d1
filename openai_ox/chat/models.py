"""
Chat completion request and response models.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, PrivateAttr

from ..logging_utils import log_operation
from ..models import Usage, parse_response
from ..streaming.models import FinishReason
from ..streaming.stream import ChatStream
from ..transport import ApiRequest, JsonBody
from .message import AssistantMessage, Message

if TYPE_CHECKING:                                        # pragma: no cover
    from ..client import OpenAi

API_URL = "v1/chat/completions"


class ResponseFormat(BaseModel):
    type: Literal["text", "json_object"] = "text"


class Choice(BaseModel):
    index: int
    message: AssistantMessage
    finish_reason: FinishReason | None = None
    logprobs: dict[str, Any] | None = None


class ChatCompletionResponse(BaseModel):
    """Complete (non-streamed) chat completion."""
    id: str
    choices: list[Choice]
    created: int
    model: str
    system_fingerprint: str | None = None
    object: str
    usage: Usage | None = None

    @property
    def text(self) -> str:
        """Content of the first choice, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


class ChatCompletionRequest(BaseModel):
    """
    Chat completion request bound to a client.

    Unset optional fields are left out of the request body.
    """
    messages: list[Message]
    model: str
    frequency_penalty: float | None = None
    logit_bias: dict[str, int] | None = None
    logprobs: bool | None = None
    top_logprobs: int | None = None
    max_tokens: int | None = None
    n: int | None = None
    presence_penalty: float | None = None
    response_format: ResponseFormat | None = None
    seed: int | None = None
    stop: list[str] | None = None
    temperature: float | None = None
    top_p: float | None = None
    tools: list[dict[str, Any]] | None = None
    user: str | None = None

    _openai: Any = PrivateAttr(default=None)

    def bind(self, openai: OpenAi) -> ChatCompletionRequest:
        """Attach the client that will send this request."""
        self._openai = openai
        return self

    def push_message(self, message: Message) -> None:
        self.messages.append(message)

    def to_payload(self, *, stream: bool = False) -> dict[str, Any]:
        """JSON body for the request, with ``stream: true`` when streaming."""
        payload = self.model_dump(mode="json", exclude_none=True)
        if stream:
            payload["stream"] = True
        return payload

    def _client(self) -> OpenAi:
        if self._openai is None:
            raise RuntimeError("request is not bound to a client; use OpenAi.chat_completion()")
        return self._openai

    @log_operation("chat_completion")
    async def send(self) -> ChatCompletionResponse:
        """Send the request and wait for the complete response."""
        openai = self._client()
        raw = await openai.transport.send(
            ApiRequest("POST", API_URL, JsonBody(self.to_payload()))
        )
        return parse_response(ChatCompletionResponse, raw)

    async def stream(self) -> ChatStream:
        """
        Send the request with ``stream: true`` and return the open stream.

        Raises:
            InvalidRequestError: If the server rejects the request
        """
        openai = self._client()
        request = ApiRequest(
            "POST", API_URL, JsonBody(self.to_payload(stream=True)), stream=True
        )
        stream = ChatStream(
            openai.transport, request, openai.stream_settings, model=self.model
        )
        return await stream.open()
