"""Audio-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    channels: int
    chunk_size: int
    total_chunks: int
    peak_level: float = 0.0


@dataclass
class RecordingSession:
    """One microphone capture written to a single WAV file."""
    session_id: str
    file_path: Path
    is_recording: bool = True
    started_at: datetime = field(default_factory=datetime.now)
