"""Abstract base classes for speech recognition backends."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional
import logging

from ..models.transcription import BackendResponse

logger = logging.getLogger(__name__)

# Invoked once per backend callback with either a response or an error message.
BackendCallback = Callable[[Optional[BackendResponse], Optional[str]], None]


class AbstractSpeechBackend(ABC):
    """Abstract base class for file-based speech recognition backends."""

    service_name = "abstract"

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether recognition can currently be used for ``self.language``."""

    @abstractmethod
    def recognize(self, audio_path: Path, callback: BackendCallback) -> None:
        """Start a recognition task for a finished audio file.

        Returns immediately. ``callback`` is invoked from a backend-owned
        thread, possibly several times with interim responses before the
        final one. Implementations must never raise from that thread.
        """

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
