"""Slack Web API client for transcript delivery."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import aiohttp

from ..exceptions import DeliveryError
from ..models.delivery import DeliveryRequest, WebhookResult

logger = logging.getLogger(__name__)

AUDIO_FILENAME = "recording.wav"


class SlackNotifier:
    """Posts transcripts to a Slack channel with a static bot token."""

    def __init__(self,
                 token: str,
                 channel: str = "general",
                 base_url: str = "https://slack.com/api",
                 attach_audio: bool = False,
                 timeout_seconds: float = 30.0):
        """Initialize Slack notifier.

        Args:
            token: Bot token sent as a bearer token
            channel: Destination channel name or ID
            base_url: Slack Web API root
            attach_audio: Upload the WAV with the transcript instead of a plain message
            timeout_seconds: Total timeout for one call
        """
        if not token:
            raise ValueError("Slack token is required")
        self.token = token
        self.channel = channel
        self.base_url = base_url.rstrip("/")
        self.attach_audio = attach_audio
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        logger.info(f"SlackNotifier initialized for channel {channel} (attach_audio={attach_audio})")

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    async def deliver(self, request: DeliveryRequest) -> WebhookResult:
        """Send a delivery request through whichever endpoint is configured."""
        if self.attach_audio and request.audio_file is not None:
            return await self.upload_file(request.transcript, request.audio_file)
        return await self.post_message(request.transcript)

    async def post_message(self, text: str) -> WebhookResult:
        """POST chat.postMessage with a form-encoded ``{channel, text}`` body."""
        url = f"{self.base_url}/chat.postMessage"
        data = {"channel": self.channel, "text": text}
        body = await self._post(url, data)
        return WebhookResult(success=True, endpoint=url, body=body)

    async def upload_file(self, text: str, audio_path: Path) -> WebhookResult:
        """POST files.upload with the WAV bytes and the transcript as comment."""
        url = f"{self.base_url}/files.upload"
        try:
            audio_bytes = Path(audio_path).read_bytes()
        except OSError as e:
            raise DeliveryError(f"Cannot read audio file {audio_path}: {e}") from e

        form = aiohttp.FormData()
        form.add_field("file", audio_bytes, filename=AUDIO_FILENAME, content_type="audio/wav")
        form.add_field("channels", self.channel)
        form.add_field("initial_comment", text)
        body = await self._post(url, form)
        return WebhookResult(success=True, endpoint=url, body=body)

    async def _post(self, url: str, data: Any) -> Dict[str, Any]:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, headers=self._headers, data=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise DeliveryError(f"Slack API error: {response.status} - {error_text}",
                                            status=response.status)
                    body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeliveryError(f"Slack request to {url} failed: {e!r}") from e
        except ValueError as e:
            # 200 with a non-JSON body, e.g. a proxy error page
            raise DeliveryError(f"Slack returned an unreadable response from {url}: {e}", status=200) from e

        if not isinstance(body, dict) or not body.get("ok", False):
            error: Optional[str] = body.get("error") if isinstance(body, dict) else None
            raise DeliveryError(f"Slack rejected the request: {error or body}", status=200)
        return body
