"""Fires both delivery paths for a finalized transcript."""

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from pubsub import pub

from .mail import InteractiveMailComposer, build_mail_draft, DEFAULT_SUBJECT
from .slack import SlackNotifier
from ..exceptions import DeliveryError
from ..models.delivery import DeliveryRequest, MailComposeResult, WebhookResult
from ..main_loop import MainLoop

logger = logging.getLogger(__name__)

WEBHOOK_TOPIC = "delivery.webhook"
MAIL_TOPIC = "delivery.mail"


class NotificationDispatcher:
    """Chat webhook (fire and forget) plus the user-mediated mail draft.

    The two paths do not depend on each other: a webhook failure is logged
    and published, the mail draft is presented regardless.
    """

    def __init__(self,
                 notifier: SlackNotifier,
                 composer: InteractiveMailComposer,
                 main_loop: MainLoop,
                 recipient: str,
                 subject: str = DEFAULT_SUBJECT,
                 sender: Optional[str] = None,
                 max_workers: int = 2):
        self.notifier = notifier
        self.composer = composer
        self.main_loop = main_loop
        self.recipient = recipient
        self.subject = subject
        self.sender = sender
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="webhook")

    def send_webhook(self, request: DeliveryRequest) -> Future:
        """Deliver to the chat webhook on a worker thread. Never raises."""
        return self.executor.submit(self._deliver_webhook, request)

    def _deliver_webhook(self, request: DeliveryRequest) -> WebhookResult:
        loop = asyncio.new_event_loop()
        try:
            result = loop.run_until_complete(self.notifier.deliver(request))
            logger.info(f"Transcription sent to Slack: {result.body}")
        except DeliveryError as e:
            logger.error(f"Failed to send transcription to Slack: {e}")
            result = WebhookResult(success=False, endpoint=self.notifier.base_url, error=str(e))
        except Exception as e:
            logger.error(f"Unexpected webhook failure: {e}", exc_info=True)
            result = WebhookResult(success=False, endpoint=self.notifier.base_url, error=repr(e))
        finally:
            loop.close()

        pub.sendMessage(WEBHOOK_TOPIC, result=result)
        return result

    def present_mail(self,
                     request: DeliveryRequest,
                     on_dismissed: Callable[[MailComposeResult], None]) -> None:
        """Open the mail draft; ``on_dismissed`` runs on the main loop afterwards."""
        draft = build_mail_draft(request, self.recipient, self.subject, self.sender)

        def completed(result: MailComposeResult) -> None:
            self.main_loop.post(self._mail_finished, result, on_dismissed)

        self.composer.present(draft, completed)

    def _mail_finished(self,
                       result: MailComposeResult,
                       on_dismissed: Callable[[MailComposeResult], None]) -> None:
        pub.sendMessage(MAIL_TOPIC, result=result)
        on_dismissed(result)

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait)
