"""Recording files and persisted settings."""

from .file_manager import FileManager
from .settings_store import SettingsStore, TRANSCRIBED_TEXT_KEY

__all__ = [
    "FileManager",
    "SettingsStore",
    "TRANSCRIBED_TEXT_KEY",
]
