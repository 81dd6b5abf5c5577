"""Data models for the VoiceDrop application."""

from .audio import AudioStats, RecordingSession
from .transcription import BackendResponse, TranscriptionResult
from .delivery import DeliveryRequest, MailComposeResult, WebhookResult
from .events import PipelineEvent

__all__ = [
    "AudioStats",
    "RecordingSession",
    "BackendResponse",
    "TranscriptionResult",
    "DeliveryRequest",
    "MailComposeResult",
    "WebhookResult",
    "PipelineEvent",
]
