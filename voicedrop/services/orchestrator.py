"""Wires the Record/Stop and Send intents to the pipeline components."""

import logging
from typing import Optional

from pubsub import pub

from .session_state import PipelineState, SessionState
from ..audio.capture import AudioCapture
from ..delivery.dispatcher import NotificationDispatcher
from ..exceptions import CaptureError, TranscriptionError
from ..main_loop import MainLoop
from ..models.audio import RecordingSession
from ..models.delivery import DeliveryRequest, MailComposeResult
from ..models.events import PipelineEvent
from ..models.transcription import TranscriptionResult
from ..storage.file_manager import FileManager
from ..storage.settings_store import SettingsStore, TRANSCRIBED_TEXT_KEY
from ..transcription.transcriber import SpeechTranscriber

logger = logging.getLogger(__name__)

STATUS_TOPIC = "pipeline.status"


class Orchestrator:
    """Runs the linear record -> stop -> transcribe -> deliver pipeline.

    Public methods and every callback that touches :attr:`state` run on the
    main loop thread. Results from the speech backend arrive on other
    threads and are posted to the main loop first.
    """

    def __init__(self,
                 capture: AudioCapture,
                 transcriber: SpeechTranscriber,
                 dispatcher: NotificationDispatcher,
                 file_manager: FileManager,
                 settings: SettingsStore,
                 main_loop: MainLoop):
        self.capture = capture
        self.transcriber = transcriber
        self.dispatcher = dispatcher
        self.file_manager = file_manager
        self.settings = settings
        self.main_loop = main_loop
        self.state = SessionState()
        self._state_before_send: Optional[PipelineState] = None

    def load(self) -> None:
        """Seed the displayed transcript from persisted settings."""
        self.state.transcript = self.settings.get_string(TRANSCRIBED_TEXT_KEY, "") or ""
        logger.info(f"Loaded persisted transcript ({len(self.state.transcript)} chars)")

    # -- Record/Stop ---------------------------------------------------

    def toggle_recording(self) -> bool:
        """Start a new session, or stop the active one.

        Returns:
            True if the state changed
        """
        if self.state.is_recording:
            return self._stop_recording()
        return self._start_recording()

    def _start_recording(self) -> bool:
        session_id = self.file_manager.create_session_directory()
        path = self.file_manager.get_recording_path(session_id)
        try:
            self.capture.start(path)
        except CaptureError as e:
            logger.error(f"Recording failed: {e}")
            self._publish("capture_failed", session_id=session_id, detail=str(e), error=e)
            return False

        self.state.session = RecordingSession(session_id=session_id, file_path=path)
        self.state.state = PipelineState.RECORDING
        self._publish("recording_started", detail=str(path))
        return True

    def _stop_recording(self) -> bool:
        self.capture.stop()
        self.state.session.is_recording = False
        self.state.state = PipelineState.STOPPED
        self._publish("recording_stopped", detail=str(self.state.session.file_path))
        return True

    # -- Send ----------------------------------------------------------

    def send(self) -> bool:
        """Transcribe the current recording; delivery follows the final result.

        Returns:
            True if a transcription task was started
        """
        if not self.state.can_send():
            logger.warning("Send ignored: no finished recording")
            self._publish("send_rejected", detail="no finished recording")
            return False

        audio_path = self.state.session.file_path
        try:
            task_id = self.transcriber.transcribe(audio_path, self._on_final_result, self._on_transcription_error)
        except TranscriptionError as e:
            self._publish("transcription_unavailable", detail=str(e), error=e)
            return False

        if self.state.state != PipelineState.TRANSCRIBING:
            self._state_before_send = self.state.state
        self.state.pending_transcriptions.add(task_id)
        self.state.state = PipelineState.TRANSCRIBING
        self._publish("transcription_started", detail=task_id)
        return True

    # Called on backend threads.
    def _on_final_result(self, result: TranscriptionResult) -> None:
        self.main_loop.post(self._finalize, result)

    def _on_transcription_error(self, error: TranscriptionError) -> None:
        self.main_loop.post(self._transcription_failed, error)

    def _finalize(self, result: TranscriptionResult) -> None:
        self.state.pending_transcriptions.discard(result.task_id)
        self.state.transcript = result.text
        self.settings.set_string(TRANSCRIBED_TEXT_KEY, result.text)

        if self.state.state == PipelineState.TRANSCRIBING:
            self.state.state = PipelineState.DELIVERED
        self.state.show_mail_composer = True
        self._publish("transcription_finalized", detail=result.text)

        request = DeliveryRequest(transcript=result.text, audio_file=result.audio_path)
        self.dispatcher.send_webhook(request)
        self.dispatcher.present_mail(request, self._on_mail_dismissed)

    def _on_mail_dismissed(self, result: MailComposeResult) -> None:
        self.state.show_mail_composer = False
        self.settings.set_string(TRANSCRIBED_TEXT_KEY, self.state.transcript)
        self._publish("mail_dismissed", detail=result.value)

    def _transcription_failed(self, error: TranscriptionError) -> None:
        self.state.pending_transcriptions.discard(error.task_id)
        if self.state.state == PipelineState.TRANSCRIBING and not self.state.pending_transcriptions:
            self.state.state = self._state_before_send or PipelineState.STOPPED
        self._publish("transcription_failed", detail=str(error), error=error)

    # -----------------------------------------------------------------

    def shutdown(self) -> None:
        if self.state.is_recording:
            self._stop_recording()
        self.dispatcher.shutdown(wait=True)

    def _publish(self, kind: str, session_id: Optional[str] = None, detail: str = "",
                 error: Optional[Exception] = None) -> None:
        if session_id is None and self.state.session is not None:
            session_id = self.state.session.session_id
        event = PipelineEvent(kind=kind, state=self.state.state.value, session_id=session_id,
                              detail=detail, error=error)
        if error is not None:
            logger.warning(f"Pipeline {kind}: {detail}")
        else:
            logger.info(f"Pipeline {kind} ({event.state}): {detail}")
        pub.sendMessage(STATUS_TOPIC, event=event)
