"""Delivery-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class DeliveryRequest:
    """Transcript plus optional audio, built once per send."""
    transcript: str
    audio_file: Optional[Path] = None


class MailComposeResult(Enum):
    """How the user left the mail compose surface."""
    SENT = "sent"
    SAVED = "saved"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class WebhookResult:
    """Outcome of one chat webhook call."""
    success: bool
    endpoint: str
    body: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
