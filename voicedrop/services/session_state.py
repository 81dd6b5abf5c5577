"""Recording/transcription session state owned by the orchestrator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set

from ..models.audio import RecordingSession
from ..storage.file_manager import FileManager


class PipelineState(Enum):
    """Stages of the record -> transcribe -> deliver pipeline."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"
    TRANSCRIBING = "transcribing"
    DELIVERED = "delivered"


@dataclass
class SessionState:
    """Everything the two buttons are gated on.

    Only mutated from the main loop thread.
    """
    state: PipelineState = PipelineState.IDLE
    session: Optional[RecordingSession] = None
    transcript: str = ""
    show_mail_composer: bool = False
    pending_transcriptions: Set[str] = field(default_factory=set)

    @property
    def is_recording(self) -> bool:
        return self.state == PipelineState.RECORDING

    def can_send(self) -> bool:
        """Send is enabled only for a finished, non-empty recording."""
        if self.is_recording or self.session is None:
            return False
        return FileManager.is_complete_recording(self.session.file_path)
