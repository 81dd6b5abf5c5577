"""Event models published on the pipeline status topic."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class PipelineEvent:
    """A state transition or a failure observed by the orchestrator."""
    kind: str  # "recording_started", "capture_failed", "delivered", ...
    state: str
    session_id: Optional[str] = None
    detail: str = ""
    error: Optional[Exception] = None
    timestamp: datetime = field(default_factory=datetime.now)
