"""
Error types for API requests and streamed responses.

Errors split into two groups:
- Call-level failures (transport, invalid request, unexpected response)
- Per-event stream failures (malformed event, decode, frame encoding)
  which are reported inline while the stream keeps running
"""

from __future__ import annotations


class ApiRequestError(Exception):
    """Base error for everything raised or yielded by the client."""


class TransportError(ApiRequestError):
    """Connection-level failure (DNS, TLS, reset, timeout)."""

    def __init__(self, message: str, category: str = "http_error"):
        super().__init__(message)
        self.category = category


class InvalidRequestError(ApiRequestError):
    """Non-2xx response carrying a decodable error envelope."""

    def __init__(
        self,
        message: str,
        param: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(f"Invalid request error: {message}")
        self.message = message
        self.param = param
        self.code = code
        self.status_code = status_code


class UnexpectedResponseError(ApiRequestError):
    """Response the client could not interpret."""

    def __init__(self, response: str, status_code: int | None = None):
        super().__init__(f"Unexpected response from API: {response}")
        self.response = response
        self.status_code = status_code


class MalformedEventError(ApiRequestError):
    """Stream frame that does not start with the ``data: `` prefix."""

    def __init__(self, text: str):
        super().__init__(f"Invalid event data: {text}")
        self.text = text


class DecodeError(ApiRequestError):
    """Payload that is not valid JSON or does not match the expected shape."""

    def __init__(self, payload: str, reason: str):
        super().__init__(f"Failed to decode payload: {reason}")
        self.payload = payload
        self.reason = reason


class FrameEncodingError(ApiRequestError):
    """Stream frame whose bytes are not valid UTF-8."""

    def __init__(self, frame: bytes, reason: str):
        super().__init__(f"Stream error: {reason}")
        self.frame = frame
        self.reason = reason
