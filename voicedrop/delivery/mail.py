"""Mail compose flow: a pre-filled draft the user sends, saves or cancels."""

import logging
import smtplib
import threading
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path
from typing import Callable, Optional, Tuple

from ..exceptions import MailError
from ..models.delivery import DeliveryRequest, MailComposeResult

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Audio Transcription"
ATTACHMENT_FILENAME = "recording.wav"

ComposeCallback = Callable[[MailComposeResult], None]


def build_mail_draft(request: DeliveryRequest,
                     recipient: str,
                     subject: str = DEFAULT_SUBJECT,
                     sender: Optional[str] = None) -> EmailMessage:
    """Build the outgoing draft; the WAV is attached only if it can be read."""
    message = EmailMessage()
    message["Subject"] = subject
    message["To"] = recipient
    if sender:
        message["From"] = sender
    message.set_content(request.transcript)

    if request.audio_file is not None:
        try:
            audio_bytes = Path(request.audio_file).read_bytes()
        except OSError as e:
            logger.warning(f"Audio attachment skipped, cannot read {request.audio_file}: {e}")
        else:
            message.add_attachment(audio_bytes, maintype="audio", subtype="wav",
                                   filename=ATTACHMENT_FILENAME)
    return message


class SmtpTransport:
    """Sends drafts through an SMTP relay."""

    def __init__(self,
                 host: str,
                 port: int = 587,
                 username: Optional[str] = None,
                 password: Optional[str] = None,
                 use_starttls: bool = True,
                 timeout: float = 30.0):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_starttls = use_starttls
        self.timeout = timeout

    def send(self, message: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_starttls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(f"SMTP delivery via {self.host}:{self.port} failed: {e}") from e
        logger.info(f"Mail sent to {message['To']} via {self.host}:{self.port}")


class InteractiveMailComposer:
    """Holds at most one draft until the user sends, saves or cancels it.

    ``auto_action`` ("send", "save" or "cancel") resolves each draft as soon
    as it is presented, for unattended runs.
    """

    AUTO_ACTIONS = ("send", "save", "cancel")

    def __init__(self,
                 transport: Optional[SmtpTransport],
                 drafts_dir: Path,
                 auto_action: Optional[str] = None):
        if auto_action is not None and auto_action not in self.AUTO_ACTIONS:
            raise ValueError(f"Unknown mail auto_action: {auto_action}")
        self.transport = transport
        self.drafts_dir = Path(drafts_dir)
        self.auto_action = auto_action
        self._lock = threading.Lock()
        self._draft: Optional[EmailMessage] = None
        self._on_complete: Optional[ComposeCallback] = None

    @property
    def pending_draft(self) -> Optional[EmailMessage]:
        with self._lock:
            return self._draft

    @property
    def has_pending(self) -> bool:
        return self.pending_draft is not None

    def present(self, draft: EmailMessage, on_complete: ComposeCallback) -> None:
        """Show a draft. A draft still open is dismissed as cancelled first."""
        if self.has_pending:
            logger.info("Replacing open mail draft")
            self.cancel()

        with self._lock:
            self._draft = draft
            self._on_complete = on_complete
        logger.info(f"Mail draft ready for {draft['To']}: {draft['Subject']}")

        if self.auto_action:
            getattr(self, self.auto_action)()

    def send(self) -> bool:
        draft, callback = self._take()
        if draft is None:
            return False
        if self.transport is None:
            logger.error("Mail transport not configured; cannot send draft")
            return self._complete(callback, MailComposeResult.FAILED)
        try:
            self.transport.send(draft)
        except MailError as e:
            logger.error(f"Failed to send mail: {e}")
            return self._complete(callback, MailComposeResult.FAILED)
        return self._complete(callback, MailComposeResult.SENT)

    def save(self) -> bool:
        draft, callback = self._take()
        if draft is None:
            return False
        path = self.drafts_dir / f"draft_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}.eml"
        try:
            self.drafts_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(bytes(draft))
        except OSError as e:
            logger.error(f"Failed to save mail draft: {e}")
            return self._complete(callback, MailComposeResult.FAILED)
        logger.info(f"Mail draft saved: {path}")
        return self._complete(callback, MailComposeResult.SAVED)

    def cancel(self) -> bool:
        draft, callback = self._take()
        if draft is None:
            return False
        return self._complete(callback, MailComposeResult.CANCELLED)

    def _take(self) -> Tuple[Optional[EmailMessage], Optional[ComposeCallback]]:
        """Detach the open draft so a draft presented meanwhile stays pending."""
        with self._lock:
            draft, callback = self._draft, self._on_complete
            self._draft = None
            self._on_complete = None
        return draft, callback

    def _complete(self, callback: Optional[ComposeCallback], result: MailComposeResult) -> bool:
        if callback is None:
            return False
        logger.info(f"Mail compose finished: {result.value}")
        callback(result)
        return True
