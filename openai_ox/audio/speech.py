"""
Text-to-speech requests.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, PrivateAttr

from ..logging_utils import log_operation
from ..transport import ApiRequest, JsonBody

API_URL = "v1/audio/speech"


class SpeechFormat(str, Enum):
    MP3 = "mp3"
    AAC = "aac"
    FLAC = "flac"
    OPUS = "opus"
    WAV = "wav"
    PCM = "pcm"


class SpeechRequest(BaseModel):
    model: str
    input: str
    voice: str
    response_format: SpeechFormat = SpeechFormat.MP3
    speed: float | None = None

    _openai: Any = PrivateAttr(default=None)

    def bind(self, openai: Any) -> SpeechRequest:
        self._openai = openai
        return self

    @log_operation("speech")
    async def send(self) -> bytes:
        """Synthesize the input and return the encoded audio."""
        if self._openai is None:
            raise RuntimeError("request is not bound to a client; use OpenAi.speech()")
        payload = self.model_dump(mode="json", exclude_none=True)
        return await self._openai.transport.send(
            ApiRequest("POST", API_URL, JsonBody(payload))
        )

    async def save(self, path: str | Path) -> Path:
        """Synthesize the input and write the audio to ``path``."""
        audio = await self.send()
        target = Path(path)
        target.write_bytes(audio)
        return target
