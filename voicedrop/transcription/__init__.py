"""Transcription module for VoiceDrop."""

from .base import AbstractSpeechBackend, BackendCallback
from .google_backend import GoogleSpeechBackend
from .publisher import TranscriptionPublisher
from .transcriber import SpeechTranscriber, join_segments

__all__ = [
    "AbstractSpeechBackend",
    "BackendCallback",
    "GoogleSpeechBackend",
    "TranscriptionPublisher",
    "SpeechTranscriber",
    "join_segments",
]
