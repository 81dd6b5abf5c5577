"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional


@dataclass
class BackendResponse:
    """One callback payload from a speech recognition backend."""
    segments: List[str]
    is_final: bool
    confidence: float = 0.0


@dataclass
class TranscriptionResult:
    """Normalized transcript produced for one backend callback."""
    text: str
    is_final: bool
    task_id: Optional[str] = None
    audio_path: Optional[Path] = None
    confidence: float = 0.0
    language: str = "en-US"
    service: str = ""
    timestamp: datetime = field(default_factory=datetime.now)
