"""Exception hierarchy for VoiceDrop.

Every pipeline stage catches its own errors, logs them and publishes them on
the status channel. These types exist so the orchestrator and the tests can
tell the failure kinds apart.
"""

from typing import Optional


class VoiceDropError(Exception):
    """Base exception for all VoiceDrop errors."""

    def __init__(self, message: str = "An unexpected error occurred", kind: str = "error"):
        self.message = message
        self.kind = kind
        super().__init__(message)


class CaptureError(VoiceDropError):
    """Raised when the audio device, stream or output file cannot be opened."""

    def __init__(self, message: str = "Audio capture failed"):
        super().__init__(message, kind="capture")


class TranscriptionError(VoiceDropError):
    """Raised or reported when speech recognition fails.

    ``kind`` is ``"unavailable"`` when the recognizer cannot be used for the
    configured locale and ``"backend"`` for a failure reported by a running
    recognition task.
    """

    UNAVAILABLE = "unavailable"
    BACKEND = "backend"

    def __init__(self, message: str, kind: str = BACKEND, task_id: Optional[str] = None):
        super().__init__(message, kind=kind)
        self.task_id = task_id

    @classmethod
    def unavailable(cls, language: str) -> "TranscriptionError":
        return cls(f"Speech recognition not available for {language}", kind=cls.UNAVAILABLE)

    @classmethod
    def backend(cls, message: str, task_id: Optional[str] = None) -> "TranscriptionError":
        return cls(message, kind=cls.BACKEND, task_id=task_id)


class DeliveryError(VoiceDropError):
    """Raised when the chat webhook call fails for any reason."""

    NETWORK = "network"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, kind=self.NETWORK)
        self.status = status


class MailError(VoiceDropError):
    """Raised when a mail draft cannot be sent or saved."""

    def __init__(self, message: str):
        super().__init__(message, kind="mail")
