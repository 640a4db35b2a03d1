"""
Speech-to-text requests sent as multipart uploads.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ..logging_utils import log_operation
from ..models import parse_response
from ..transport import ApiRequest, MultipartBody

API_URL = "v1/audio/transcriptions"


class AudioFormat(Enum):
    """Accepted upload formats as (extension, mime type)."""
    MP3 = ("mp3", "audio/mpeg")
    MP4 = ("mp4", "audio/mp4")
    FLAC = ("flac", "audio/flac")
    MPEG = ("mpeg", "audio/mpeg")
    MPGA = ("mpga", "audio/mpeg")
    M4A = ("m4a", "audio/mp4")
    OGG = ("ogg", "audio/ogg")
    WAV = ("wav", "audio/wav")
    WEBM = ("webm", "audio/webm")

    @property
    def extension(self) -> str:
        return self.value[0]

    @property
    def mime(self) -> str:
        return self.value[1]

    @classmethod
    def from_extension(cls, extension: str) -> AudioFormat | None:
        extension = extension.lower().lstrip(".")
        for audio_format in cls:
            if audio_format.extension == extension:
                return audio_format
        return None


class TranscriptionFormat(str, Enum):
    JSON = "json"
    TEXT = "text"
    SRT = "srt"
    VERBOSE_JSON = "verbose_json"
    VTT = "vtt"


TEXT_FORMATS = (TranscriptionFormat.TEXT, TranscriptionFormat.SRT, TranscriptionFormat.VTT)


class Transcription(BaseModel):
    """``json`` and ``verbose_json`` transcription result."""
    text: str
    language: str | None = None
    duration: float | None = None
    segments: list[dict[str, Any]] | None = None


class TranscriptionRequest:
    """Audio upload plus transcription options."""

    def __init__(
        self,
        openai: Any,
        audio: bytes | str | Path,
        model: str,
        *,
        audio_format: AudioFormat | None = None,
        language: str | None = None,
        prompt: str | None = None,
        response_format: TranscriptionFormat | None = None,
        temperature: float | None = None,
    ) -> None:
        if isinstance(audio, bytes):
            if audio_format is None:
                raise ValueError("audio_format is required when audio is given as bytes")
            self.audio = audio
        else:
            path = Path(audio)
            inferred = AudioFormat.from_extension(path.suffix)
            if audio_format is None and inferred is None:
                raise ValueError(f"Unsupported audio file extension: '{path.suffix}'")
            audio_format = audio_format or inferred
            self.audio = path.read_bytes()

        self.format: AudioFormat = audio_format
        self.model = model
        self.language = language
        self.prompt = prompt
        self.response_format = response_format
        self.temperature = temperature
        self._openai = openai

    def to_body(
        self, response_format: TranscriptionFormat | None = None
    ) -> MultipartBody:
        """Multipart body; ``response_format`` overrides the request's own."""
        response_format = response_format or self.response_format
        fields = {"model": self.model}
        if self.language is not None:
            fields["language"] = self.language
        if self.prompt is not None:
            fields["prompt"] = self.prompt
        if response_format is not None:
            fields["response_format"] = response_format.value
        if self.temperature is not None:
            fields["temperature"] = str(self.temperature)

        file_part = (f"audio.{self.format.extension}", self.audio, self.format.mime)
        return MultipartBody(fields=fields, files={"file": file_part})

    async def _send_raw(
        self, response_format: TranscriptionFormat | None = None
    ) -> bytes:
        return await self._openai.transport.send(
            ApiRequest("POST", API_URL, self.to_body(response_format))
        )

    @log_operation("transcription")
    async def send(self) -> Transcription:
        """Transcribe with a JSON response format."""
        if self.response_format in TEXT_FORMATS:
            raise ValueError(
                f"response_format '{self.response_format.value}' returns text; use send_text()"
            )
        return parse_response(Transcription, await self._send_raw())

    @log_operation("transcription")
    async def send_text(self) -> str:
        """Transcribe with a plain text response format (text, srt, vtt)."""
        raw = await self._send_raw(self.response_format or TranscriptionFormat.TEXT)
        return raw.decode("utf-8")
