"""Main application entry point for VoiceDrop."""

import sys
import argparse
import logging
import threading
from pathlib import Path
from typing import Optional

from pubsub import pub

from voicedrop import __version__
from voicedrop.audio.capture import AudioCapture
from voicedrop.delivery.dispatcher import NotificationDispatcher
from voicedrop.delivery.mail import InteractiveMailComposer, SmtpTransport
from voicedrop.delivery.slack import SlackNotifier
from voicedrop.main_loop import MainLoop
from voicedrop.models.events import PipelineEvent
from voicedrop.services.orchestrator import Orchestrator, STATUS_TOPIC
from voicedrop.storage.file_manager import FileManager
from voicedrop.storage.settings_store import SettingsStore
from voicedrop.transcription.google_backend import GoogleSpeechBackend
from voicedrop.transcription.transcriber import SpeechTranscriber
from voicedrop.ui.keyboard_input import create_input_handler
from voicedrop.ui.recorder_screen import RecorderScreen

from .config import VoiceDropConfig

logger = logging.getLogger(__name__)

# Events after which an unattended run has nothing left to wait for.
AUTO_MODE_TERMINAL_EVENTS = {
    "mail_dismissed",
    "capture_failed",
    "send_rejected",
    "transcription_unavailable",
    "transcription_failed",
}


class App:

    def __init__(self, config_path: str, log_level: Optional[str] = None):
        self.config = VoiceDropConfig(config_path)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.main_loop = MainLoop()

    def init(self, auto_mode: bool = False) -> None:
        logger.info("Initializing services...")
        data_dir = self.config.get_data_directory()
        self.file_manager = FileManager(data_dir)
        self.settings = SettingsStore(Path(data_dir) / "settings.json")
        self.prune_sessions()

        audio = self.config.get_audio_settings()
        logger.info(f"Audio settings: {audio.sample_rate}Hz, {audio.channels} channels, "
                    f"{audio.chunk_size} frames/chunk")
        self.capture = AudioCapture(
            sample_rate=audio.sample_rate,
            chunk_size=audio.chunk_size,
            channels=audio.channels,
        )

        self.backend = GoogleSpeechBackend(
            credentials_path=self.config.get_google_credentials_path(),
            language=self.config.get('google_cloud.language', 'en-US'),
            use_enhanced=self.config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=self.config.get('google_cloud.enable_automatic_punctuation', True),
        )
        if not self.backend.initialize():
            logger.warning("Speech backend unavailable; Send will fail until credentials are fixed")
        self.transcriber = SpeechTranscriber(self.backend)

        slack = self.config.get_slack_settings()
        notifier = SlackNotifier(
            token=slack.token,
            channel=slack.channel,
            base_url=slack.base_url,
            attach_audio=slack.attach_audio,
            timeout_seconds=slack.timeout_seconds,
        )

        mail = self.config.get_mail_settings()
        transport = SmtpTransport(
            host=mail.smtp_host,
            port=mail.smtp_port,
            username=mail.smtp_username,
            password=mail.smtp_password,
            use_starttls=mail.use_starttls,
        )
        auto_action = mail.auto_action or ("save" if auto_mode else None)
        self.composer = InteractiveMailComposer(transport, Path(data_dir) / "drafts", auto_action)

        self.dispatcher = NotificationDispatcher(
            notifier, self.composer, self.main_loop,
            recipient=mail.recipient, subject=mail.subject, sender=mail.sender,
        )
        self.orchestrator = Orchestrator(
            self.capture, self.transcriber, self.dispatcher,
            self.file_manager, self.settings, self.main_loop,
        )
        self.orchestrator.load()

    def prune_sessions(self) -> int:
        """Drop recordings older than ``storage.max_session_age_days``, if set."""
        max_age_days = self.config.get('storage.max_session_age_days')
        if not max_age_days:
            return 0
        removed = self.file_manager.cleanup_old_sessions(max_age_days=int(max_age_days))
        logger.info(f"{len(self.file_manager.list_sessions())} recordings kept after pruning")
        return removed

    def run_interactive(self) -> None:
        self.screen = RecorderScreen(self.orchestrator, self.capture, self.composer)
        pub.subscribe(self._on_status_for_screen, STATUS_TOPIC)

        input_handler = create_input_handler(self._on_key)
        input_handler.start()
        self.main_loop.post(self.screen.render)
        try:
            self.main_loop.run_forever()
        finally:
            input_handler.stop()
            self.cleanup()

    def _on_status_for_screen(self, event: PipelineEvent) -> None:
        self.screen.on_status(event)

    def _on_key(self, key: str) -> bool:
        """Keyboard thread: route keys to the main loop or the mail composer."""
        if key == 'q':
            self.main_loop.stop()
            return False
        if key == 'r':
            self.main_loop.post(self.orchestrator.toggle_recording)
        elif key == 's':
            self.main_loop.post(self.orchestrator.send)
        elif key == 'm':
            self.composer.send()
        elif key == 'd':
            self.composer.save()
        elif key == 'c':
            self.composer.cancel()
        self.main_loop.post(self.screen.render)
        return True

    def run_auto(self, duration: float, timeout: float) -> bool:
        """Record for ``duration`` seconds, send, and wait for delivery to finish.

        Returns:
            True if the pipeline reached mail dismissal
        """
        self.outcome = None
        pub.subscribe(self._on_status_for_auto, STATUS_TOPIC)

        def stop_and_send() -> None:
            if self.orchestrator.state.is_recording:
                self.orchestrator.toggle_recording()
            self.orchestrator.send()

        def start() -> None:
            if self.orchestrator.toggle_recording():
                timer = threading.Timer(duration, self.main_loop.post, args=(stop_and_send,))
                timer.daemon = True
                timer.start()

        watchdog = threading.Timer(duration + timeout, self._auto_timeout)
        watchdog.daemon = True
        watchdog.start()
        self.main_loop.post(start)
        try:
            self.main_loop.run_forever()
        finally:
            watchdog.cancel()
            self.cleanup()
        return self.outcome == "mail_dismissed"

    def _on_status_for_auto(self, event: PipelineEvent) -> None:
        if event.kind in AUTO_MODE_TERMINAL_EVENTS:
            self.outcome = event.kind
            self.main_loop.stop()

    def _auto_timeout(self) -> None:
        logger.error("Timed out waiting for a final transcription")
        self.main_loop.stop()

    def cleanup(self) -> None:
        self.orchestrator.shutdown()
        self.backend.cleanup()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path',
                               str(Path(config.get_data_directory()) / 'logs' / 'voicedrop.log'))
    console_output = config.get('logging.console_output', False)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("VoiceDrop starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for VoiceDrop."""
    parser = argparse.ArgumentParser(
        description="VoiceDrop - record, transcribe and deliver voice notes",
        epilog="Keys: r=Record/Stop, s=Send, m=send mail, d=save draft, c=cancel draft, q=Quit"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="voicedrop.yaml",
        help="Path to configuration YAML file (default: voicedrop.yaml)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides logging.level in the config)"
    )
    parser.add_argument(
        "--auto",
        action="store_true",
        help="Record for --duration seconds, send, wait for delivery, then exit"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=10,
        help="Duration in seconds for auto mode recording (default: 10)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=120,
        help="Seconds to wait for transcription and delivery in auto mode (default: 120)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"VoiceDrop v{__version__}"
    )

    args = parser.parse_args()

    try:
        app = App(args.config, args.log_level)
        app.init(auto_mode=args.auto)
        if args.auto:
            ok = app.run_auto(args.duration, args.timeout)
            sys.exit(0 if ok else 1)
        app.run_interactive()
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
