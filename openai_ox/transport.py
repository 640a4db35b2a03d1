"""
HTTP transport shared by every endpoint.

Requests are described as data (``ApiRequest`` with a JSON, multipart or
empty body) and executed by ``HttpTransport`` over an injected
``httpx.AsyncClient`` connection pool.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ValidationError

from .exceptions import ApiRequestError, InvalidRequestError, UnexpectedResponseError
from .logging_utils import ApiErrorHandler, operation_context
from .models import ErrorResponse
from .rate_limiting import LeakyBucketRateLimiter
from .streaming.decoder import SSEFrameBuffer

BASE_URL = "https://api.openai.com"


@dataclass(frozen=True)
class JsonBody:
    """JSON request body."""
    payload: dict[str, Any]


@dataclass(frozen=True)
class MultipartBody:
    """multipart/form-data body: text fields plus (filename, bytes, mime) files."""
    fields: dict[str, str] = field(default_factory=dict)
    files: dict[str, tuple[str, bytes, str]] = field(default_factory=dict)


@dataclass(frozen=True)
class ApiRequest:
    """One outbound API call."""
    method: str
    path: str
    body: JsonBody | MultipartBody | None = None
    stream: bool = False


class HttpTransport:
    """Executes ``ApiRequest``s with bearer authentication. Never retries."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str = BASE_URL,
        rate_limiter: LeakyBucketRateLimiter | None = None,
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = rate_limiter
        self._api_key = api_key

    def __repr__(self) -> str:
        return f"HttpTransport(base_url={self.base_url!r}, api_key='[REDACTED]')"

    def build_request(self, request: ApiRequest) -> httpx.Request:
        """Translate an ``ApiRequest`` into an ``httpx.Request``."""
        url = f"{self.base_url}/{request.path.lstrip('/')}"
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if request.stream:
            headers["Accept"] = "text/event-stream"

        body = request.body
        if isinstance(body, JsonBody):
            return self.client.build_request(
                request.method, url, headers=headers, json=body.payload
            )
        if isinstance(body, MultipartBody):
            return self.client.build_request(
                request.method, url, headers=headers,
                data=body.fields, files=body.files,
            )
        return self.client.build_request(request.method, url, headers=headers)

    async def _throttle(self) -> None:
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire_one()

    @staticmethod
    def error_from_response(response: httpx.Response) -> ApiRequestError:
        """Map a non-2xx response whose body has been read to an error."""
        try:
            envelope = ErrorResponse.model_validate_json(response.content)
        except ValidationError:
            return UnexpectedResponseError(
                response.text, status_code=response.status_code
            )
        return InvalidRequestError(
            envelope.error.message,
            param=envelope.error.param,
            code=envelope.error.code,
            status_code=response.status_code,
        )

    async def send(self, request: ApiRequest) -> bytes:
        """
        Perform a request/response call.

        Returns:
            The full response body

        Raises:
            TransportError: On connection-level failure
            InvalidRequestError: On non-2xx with an error envelope
            UnexpectedResponseError: On non-2xx without an error envelope
        """
        await self._throttle()
        operation = f"{request.method} {request.path}"

        async with operation_context("http_request", context={"request": operation}):
            try:
                response = await self.client.send(self.build_request(request))
            except httpx.HTTPError as e:
                raise ApiErrorHandler.to_transport_error(e, operation) from e

            if not response.is_success:
                raise self.error_from_response(response)
            return response.content

    async def connect(self, request: ApiRequest) -> httpx.Response:
        """
        Open a streaming response; only the status line and headers are read.

        The caller owns the returned response and must close it.
        """
        await self._throttle()
        operation = f"{request.method} {request.path}"

        async with operation_context("http_connect", context={"request": operation}):
            try:
                response = await self.client.send(
                    self.build_request(request), stream=True
                )
            except httpx.HTTPError as e:
                raise ApiErrorHandler.to_transport_error(e, operation) from e

            if response.is_success:
                return response

            try:
                await response.aread()
            except httpx.HTTPError as e:
                raise ApiErrorHandler.to_transport_error(e, operation) from e
            finally:
                await response.aclose()
            raise self.error_from_response(response)

    async def iter_frames(self, response: httpx.Response) -> AsyncIterator[bytes]:
        """Yield event-aligned raw frames until the server closes the body."""
        buffer = SSEFrameBuffer()
        try:
            async for data in response.aiter_bytes():
                for frame in buffer.feed(data):
                    yield frame
            tail = buffer.flush()
            if tail:
                yield tail
        except httpx.HTTPError as e:
            raise ApiErrorHandler.to_transport_error(e, "stream read") from e
        finally:
            await response.aclose()
