"""Services layer for VoiceDrop application logic."""

from .session_state import PipelineState, SessionState
from .orchestrator import Orchestrator

__all__ = [
    "PipelineState",
    "SessionState",
    "Orchestrator",
]
