"""Google Speech-to-Text streaming backend for recorded WAV files."""

import logging
import threading
import wave
from pathlib import Path
from typing import Iterator, List, Optional

from .base import AbstractSpeechBackend, BackendCallback
from ..models.transcription import BackendResponse

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.auth import exceptions as auth_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

# Streaming requests must stay below 25KB of audio each.
REQUEST_BYTES = 16 * 1024


class GoogleSpeechBackend(AbstractSpeechBackend):
    """Google Speech-to-Text streaming API backend.

    A recording is streamed with interim results enabled. Every interim
    response is reported as a non-final callback carrying all words
    finalized so far plus the current hypothesis; once the stream ends a
    single final callback carries every finalized word of the file.
    """

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 timeout: Optional[float] = None):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            language: Language code (e.g., 'en-US')
            use_enhanced: Whether to use enhanced model
            enable_automatic_punctuation: Enable automatic punctuation
            timeout: Optional per-stream deadline passed to the API
        """
        super().__init__(language)
        if not credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.credentials_path = credentials_path
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.timeout = timeout
        self.client: Optional[speech.SpeechClient] = None
        self.project_id = None

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        try:
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
            self.client = speech.SpeechClient(credentials=credentials)
        except (OSError, ValueError, auth_exceptions.GoogleAuthError) as e:
            logger.error(f"Google Speech backend failed to initialize: {e}")
            self.client = None
            return False

        self.project_id = credentials.project_id
        logger.info(f"Google Speech-to-Text backend initialized (project {self.project_id})")
        return True

    def is_available(self) -> bool:
        return self.client is not None

    def recognize(self, audio_path: Path, callback: BackendCallback) -> None:
        thread = threading.Thread(
            target=self._run_stream,
            args=(Path(audio_path), callback),
            name=f"GoogleSpeech-{Path(audio_path).parent.name}",
            daemon=True,
        )
        thread.start()

    def _streaming_config(self, sample_rate: int, channels: int) -> speech.StreamingRecognitionConfig:
        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            audio_channel_count=channels,
            language_code=self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            enable_word_time_offsets=True,
        )
        return speech.StreamingRecognitionConfig(config=config, interim_results=True)

    def _audio_requests(self, wf: wave.Wave_read) -> Iterator[speech.StreamingRecognizeRequest]:
        frames_per_request = max(1, REQUEST_BYTES // (wf.getsampwidth() * wf.getnchannels()))
        while True:
            data = wf.readframes(frames_per_request)
            if not data:
                return
            yield speech.StreamingRecognizeRequest(audio_content=data)

    def _run_stream(self, audio_path: Path, callback: BackendCallback) -> None:
        """Worker thread body; reports every outcome through ``callback``."""
        final_segments: List[str] = []
        last_confidence = 0.0
        try:
            with wave.open(str(audio_path), 'rb') as wf:
                streaming_config = self._streaming_config(wf.getframerate(), wf.getnchannels())
                responses = self.client.streaming_recognize(
                    config=streaming_config,
                    requests=self._audio_requests(wf),
                    timeout=self.timeout,
                )
                for response in responses:
                    if response.error and response.error.code:
                        callback(None, f"Google Speech error {response.error.code}: {response.error.message}")
                        return
                    for result in response.results:
                        if not result.alternatives:
                            continue
                        alternative = result.alternatives[0]
                        segments = _segments_of(alternative)
                        if result.is_final:
                            final_segments.extend(segments)
                            last_confidence = alternative.confidence
                            callback(BackendResponse(list(final_segments), False, alternative.confidence), None)
                        else:
                            callback(BackendResponse(final_segments + segments, False, result.stability), None)
        except (wave.Error, EOFError, OSError) as e:
            logger.error(f"Cannot read audio file {audio_path}: {e}")
            callback(None, f"Cannot read audio file: {e}")
            return
        except gax_exceptions.GoogleAPIError as e:
            logger.error(f"Google STT API call error for {audio_path}: {e}")
            callback(None, f"Google Speech API error: {e}")
            return
        except Exception as e:
            logger.error(f"Unexpected Google STT failure for {audio_path}: {e}", exc_info=True)
            callback(None, f"Google Speech failure: {e!r}")
            return

        if not final_segments:
            logger.info(f"No speech detected in {audio_path}")
            callback(None, "No speech detected")
            return

        callback(BackendResponse(final_segments, True, last_confidence), None)

    def cleanup(self) -> None:
        if self.client is not None:
            self.client.transport.close()
            self.client = None


def _segments_of(alternative) -> List[str]:
    """Word list of an alternative; interim alternatives carry no words."""
    if alternative.words:
        return [word.word for word in alternative.words]
    return alternative.transcript.split()
