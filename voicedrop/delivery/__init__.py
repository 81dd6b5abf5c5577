"""Transcript delivery: chat webhook and mail compose."""

from .slack import SlackNotifier
from .mail import (
    build_mail_draft,
    InteractiveMailComposer,
    SmtpTransport,
)
from .dispatcher import NotificationDispatcher

__all__ = [
    "SlackNotifier",
    "build_mail_draft",
    "InteractiveMailComposer",
    "SmtpTransport",
    "NotificationDispatcher",
]
