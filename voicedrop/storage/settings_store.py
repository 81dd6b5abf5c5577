"""Durable key/value settings shared by the whole process."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

TRANSCRIBED_TEXT_KEY = "TranscribedText"


class SettingsStore:
    """String settings persisted to a JSON file.

    Writes go through a temporary file and ``os.replace`` so a crash never
    leaves a half-written settings file behind.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._values: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (ValueError, OSError) as e:
            logger.error(f"Ignoring unreadable settings file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._lock:
            value = self._values.get(key)
        return value if isinstance(value, str) else default

    def set_string(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value
            self._flush()
        logger.debug(f"Setting '{key}' written ({len(value)} chars)")

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".settings-", suffix=".json")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(self._values, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise
