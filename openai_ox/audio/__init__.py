from .speech import SpeechFormat, SpeechRequest
from .transcription import (
    AudioFormat,
    Transcription,
    TranscriptionFormat,
    TranscriptionRequest,
)

__all__ = [
    "AudioFormat",
    "SpeechFormat",
    "SpeechRequest",
    "Transcription",
    "TranscriptionFormat",
    "TranscriptionRequest",
]
