"""Speech transcriber that turns backend callbacks into transcripts."""

import itertools
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from .base import AbstractSpeechBackend
from .publisher import TranscriptionPublisher
from ..exceptions import TranscriptionError
from ..models.transcription import BackendResponse, TranscriptionResult

logger = logging.getLogger(__name__)

FinalCallback = Callable[[TranscriptionResult], None]
ErrorCallback = Callable[[TranscriptionError], None]


def join_segments(segments: Iterable[str]) -> str:
    """Join recognized segments, each followed by one space, then trim."""
    transcription = ""
    for segment in segments:
        transcription += segment + " "
    return transcription.strip()


class SpeechTranscriber:
    """Submits finished recordings to a backend and forwards final transcripts.

    Every call to :meth:`transcribe` starts a new backend task; tasks cannot
    be cancelled and have no timeout. Interim results are published for
    observers only, the final one is handed to ``on_final``.
    """

    def __init__(self,
                 backend: AbstractSpeechBackend,
                 publisher: Optional[TranscriptionPublisher] = None):
        self.backend = backend
        self.publisher = publisher or TranscriptionPublisher()
        self._task_counter = itertools.count(1)

    @property
    def language(self) -> str:
        return self.backend.language

    def transcribe(self,
                   audio_path: Path,
                   on_final: FinalCallback,
                   on_error: Optional[ErrorCallback] = None) -> str:
        """Start transcribing ``audio_path``.

        Returns:
            Identifier of the new recognition task

        Raises:
            TranscriptionError: with kind ``unavailable`` when the backend
                cannot be used; nothing is started in that case.
        """
        if not self.backend.is_available():
            logger.warning("Speech recognition not available")
            raise TranscriptionError.unavailable(self.language)

        task_id = f"task_{next(self._task_counter)}"
        audio_path = Path(audio_path)
        logger.info(f"Transcribing {audio_path} as {task_id} ({self.language})")

        def handle(response: Optional[BackendResponse], error: Optional[str]) -> None:
            self._on_backend_callback(task_id, audio_path, response, error, on_final, on_error)

        self.backend.recognize(audio_path, handle)
        return task_id

    def _on_backend_callback(self,
                             task_id: str,
                             audio_path: Path,
                             response: Optional[BackendResponse],
                             error: Optional[str],
                             on_final: FinalCallback,
                             on_error: Optional[ErrorCallback]) -> None:
        try:
            if error is not None:
                logger.error(f"Transcription error ({task_id}): {error}")
                if on_error:
                    on_error(TranscriptionError.backend(error, task_id=task_id))
                return
            if response is None:
                return

            result = TranscriptionResult(
                text=join_segments(response.segments),
                is_final=response.is_final,
                task_id=task_id,
                audio_path=audio_path,
                confidence=response.confidence,
                language=self.language,
                service=self.backend.service_name,
            )
            logger.debug(f"Transcription ({task_id}, final={result.is_final}): {result.text}")
            self.publisher.publish_transcription_result(result)

            if result.is_final:
                on_final(result)
        except Exception as e:
            # Runs on a backend thread; nothing above us can handle it.
            logger.error(f"Unhandled exception in transcription callback for {task_id}: {e}", exc_info=True)
