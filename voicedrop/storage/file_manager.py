"""File management for per-session audio recordings."""

import logging
import shutil
import random
import string
import wave
from pathlib import Path
from datetime import datetime
from typing import List, Optional


logger = logging.getLogger(__name__)

RECORDING_FILENAME = "recording.wav"


class FileManager:
    """Manages the data directory layout for recordings and logs."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.sessions_dir = self.data_dir / "sessions"
        self.logs_dir = self.data_dir / "logs"

        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.sessions_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def create_session_directory(self) -> str:
        """Create new session directory with timestamp and random suffix.

        Returns:
            Session ID (timestamp-based with random suffix)
        """
        while True:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
            session_id = f"{timestamp}_{random_suffix}"
            session_path = self.sessions_dir / session_id
            try:
                session_path.mkdir()
                break
            except FileExistsError:
                continue

        logger.info(f"Created session directory: {session_path}")
        return session_id

    def get_session_path(self, session_id: str) -> Path:
        return self.sessions_dir / session_id

    def get_recording_path(self, session_id: str) -> Path:
        """Path of the WAV file owned by a session."""
        return self.get_session_path(session_id) / RECORDING_FILENAME

    @staticmethod
    def is_complete_recording(path: Optional[Path]) -> bool:
        """True when ``path`` is a readable WAV file holding at least one frame."""
        if path is None or not Path(path).is_file():
            return False
        try:
            with wave.open(str(path), 'rb') as wf:
                return wf.getnframes() > 0
        except (wave.Error, EOFError, OSError) as e:
            logger.debug(f"Not a complete recording: {path} ({e})")
            return False

    def list_sessions(self) -> List[str]:
        """List session IDs that hold a recording, oldest first."""
        sessions = [
            path.name for path in self.sessions_dir.iterdir()
            if path.is_dir() and (path / RECORDING_FILENAME).exists()
        ]
        sessions.sort()
        logger.debug(f"Found {len(sessions)} sessions")
        return sessions

    def cleanup_old_sessions(self, max_age_days: int = 30) -> int:
        """Remove session directories older than ``max_age_days``.

        Returns:
            Number of sessions cleaned up
        """
        cutoff_time = datetime.now().timestamp() - (max_age_days * 24 * 60 * 60)
        cleaned_count = 0

        for session_path in self.sessions_dir.iterdir():
            if session_path.is_dir() and session_path.stat().st_mtime < cutoff_time:
                shutil.rmtree(session_path)
                cleaned_count += 1
                logger.info(f"Cleaned up old session: {session_path}")

        logger.info(f"Cleaned up {cleaned_count} old sessions")
        return cleaned_count
