"""Simple YAML configuration loader for VoiceDrop."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

SLACK_TOKEN_ENV = "VOICEDROP_SLACK_TOKEN"
SMTP_PASSWORD_ENV = "VOICEDROP_SMTP_PASSWORD"


class AudioSettings(BaseModel):
    """Fixed linear PCM recording profile."""
    sample_rate: int = 44100
    channels: int = 2
    chunk_size: int = 1024


class SlackSettings(BaseModel):
    """Chat webhook delivery settings."""
    token: str = Field(min_length=1)
    channel: str = "general"
    base_url: str = "https://slack.com/api"
    attach_audio: bool = False
    timeout_seconds: float = 30.0


class MailSettings(BaseModel):
    """Mail compose settings."""
    recipient: str = Field(min_length=3)
    subject: str = "Audio Transcription"
    sender: Optional[str] = None
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    use_starttls: bool = True
    auto_action: Optional[str] = None  # "send", "save" or "cancel"


class VoiceDropConfig:
    """VoiceDrop configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. Defaults to voicedrop.yaml
                        in the current directory.
        """
        self.config_file = Path(config_path or "voicedrop.yaml")

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not config:
            raise ValueError("Configuration file is empty")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in (('google_cloud', 'credentials_path'),
                             ('storage', 'data_directory'),
                             ('logging', 'file_path')):
            section_dict = config.get(section)
            if not isinstance(section_dict, dict) or not section_dict.get(key):
                continue
            if not os.path.isabs(section_dict[key]):
                section_dict[key] = str(config_dir / section_dict[key])

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'google_cloud.language').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config

        for key in key_path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation."""
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - CRASHES if not found."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            raise ValueError("Google credentials path not configured in voicedrop.yaml")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())

    def get_audio_settings(self) -> AudioSettings:
        return _validated(AudioSettings, dict(self.get('audio') or {}), 'audio')

    def get_slack_settings(self) -> SlackSettings:
        """Slack settings; the bearer token may come from the environment."""
        section = dict(self.get('slack') or {})
        token = os.environ.get(SLACK_TOKEN_ENV) or section.get('token')
        if not token:
            raise ValueError(f"Slack token not configured (set slack.token or {SLACK_TOKEN_ENV})")
        section['token'] = token
        return _validated(SlackSettings, section, 'slack')

    def get_mail_settings(self) -> MailSettings:
        section = dict(self.get('mail') or {})
        password = os.environ.get(SMTP_PASSWORD_ENV)
        if password:
            section['smtp_password'] = password
        return _validated(MailSettings, section, 'mail')


def _validated(model, data: Dict[str, Any], section: str):
    try:
        return model(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid '{section}' configuration: {e}") from e
