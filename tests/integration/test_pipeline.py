"""Record -> stop -> transcribe -> deliver scenarios through the Orchestrator."""

import threading
import time
import pytest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from voicedrop.audio.capture import AudioCapture
from voicedrop.delivery.dispatcher import NotificationDispatcher
from voicedrop.delivery.mail import InteractiveMailComposer
from voicedrop.exceptions import CaptureError, DeliveryError
from voicedrop.main_loop import MainLoop
from voicedrop.models.delivery import DeliveryRequest, WebhookResult
from voicedrop.models.transcription import BackendResponse
from voicedrop.services.orchestrator import Orchestrator
from voicedrop.services.session_state import PipelineState
from voicedrop.storage.file_manager import FileManager
from voicedrop.storage.settings_store import SettingsStore, TRANSCRIBED_TEXT_KEY
from voicedrop.transcription.base import AbstractSpeechBackend
from voicedrop.transcription.transcriber import SpeechTranscriber


class ScriptedSpeechBackend(AbstractSpeechBackend):
    """Keeps recognition callbacks so the test decides what the recognizer says."""

    service_name = "scripted"

    def __init__(self):
        super().__init__("en-US")
        self.available = True
        self.tasks = []

    def initialize(self) -> bool:
        return True

    def is_available(self) -> bool:
        return self.available

    def recognize(self, audio_path, callback) -> None:
        self.tasks.append(callback)

    def cleanup(self) -> None:
        pass


class FakeCapture:
    """Writes a short WAV on start instead of opening a microphone."""

    def __init__(self, frames: bytes, wav_writer):
        self.frames = frames
        self.wav_writer = wav_writer
        self.fail = False
        self.is_recording = False

    def start(self, path):
        if self.fail:
            raise CaptureError("Recording failed: no input device")
        self.wav_writer(path, self.frames)
        self.is_recording = True
        return path

    def stop(self):
        self.is_recording = False


@pytest.fixture
def pipeline(temp_data_dir, sample_audio_chunk, wav_writer):
    data_dir = Path(temp_data_dir)
    main_loop = MainLoop()
    backend = ScriptedSpeechBackend()
    notifier = MagicMock()
    notifier.base_url = "https://slack.test/api"
    notifier.deliver = AsyncMock(return_value=WebhookResult(True, "chat.postMessage", {"ok": True}))
    composer = InteractiveMailComposer(None, data_dir / "drafts")
    dispatcher = NotificationDispatcher(notifier, composer, main_loop, recipient="ops@example.com")
    settings = SettingsStore(data_dir / "settings.json")
    capture = FakeCapture(sample_audio_chunk * 10, wav_writer)
    orchestrator = Orchestrator(capture, SpeechTranscriber(backend), dispatcher,
                                FileManager(str(data_dir)), settings, main_loop)
    orchestrator.load()
    yield SimpleNamespace(orchestrator=orchestrator, backend=backend, notifier=notifier,
                          composer=composer, dispatcher=dispatcher, settings=settings,
                          capture=capture, main_loop=main_loop, data_dir=data_dir)
    dispatcher.shutdown()


def record_and_stop(p):
    assert p.orchestrator.toggle_recording() is True
    assert p.orchestrator.state.state == PipelineState.RECORDING
    assert p.orchestrator.toggle_recording() is True
    assert p.orchestrator.state.state == PipelineState.STOPPED


def persisted(p):
    return p.settings.get_string(TRANSCRIBED_TEXT_KEY)


@pytest.mark.integration
class TestPipeline:

    def test_hello_world_scenario(self, pipeline, status_events):
        p = pipeline
        record_and_stop(p)
        audio_path = p.orchestrator.state.session.file_path

        assert p.orchestrator.send() is True
        assert p.orchestrator.state.state == PipelineState.TRANSCRIBING
        callback = p.backend.tasks[0]

        callback(BackendResponse(["hello"], False), None)
        callback(BackendResponse(["hello", "world"], True), None)
        # Nothing touches state until the main loop runs the redispatched work.
        assert persisted(p) is None
        assert p.orchestrator.state.state == PipelineState.TRANSCRIBING

        p.main_loop.run_pending()

        assert persisted(p) == "hello world"
        assert p.orchestrator.state.state == PipelineState.DELIVERED
        assert p.orchestrator.state.transcript == "hello world"
        assert p.orchestrator.state.show_mail_composer is True

        draft = p.composer.pending_draft
        assert draft["Subject"] == "Audio Transcription"
        assert draft.get_body(("plain",)).get_content().strip() == "hello world"

        p.dispatcher.shutdown()
        p.notifier.deliver.assert_awaited_once_with(DeliveryRequest("hello world", audio_path))

        p.composer.cancel()
        p.main_loop.run_pending()

        assert p.orchestrator.state.show_mail_composer is False
        assert persisted(p) == "hello world"
        assert status_events.kinds()[-2:] == ["transcription_finalized", "mail_dismissed"]

    def test_interim_results_have_no_side_effects(self, pipeline):
        p = pipeline
        record_and_stop(p)
        p.orchestrator.send()

        for words in (["he"], ["hello"], ["hello", "wor"]):
            p.backend.tasks[0](BackendResponse(words, False), None)
        p.main_loop.run_pending()

        assert persisted(p) is None
        assert not p.composer.has_pending
        p.notifier.deliver.assert_not_called()
        # No final result ever: the session waits indefinitely.
        assert p.orchestrator.state.state == PipelineState.TRANSCRIBING
        assert len(p.orchestrator.state.pending_transcriptions) == 1

    def test_unavailable_recognizer_halts_before_delivery(self, pipeline, status_events):
        p = pipeline
        p.settings.set_string(TRANSCRIBED_TEXT_KEY, "previous")
        p.backend.available = False
        record_and_stop(p)

        assert p.orchestrator.send() is False
        p.main_loop.run_pending()

        assert status_events.kinds()[-1] == "transcription_unavailable"
        assert p.orchestrator.state.state == PipelineState.STOPPED
        assert persisted(p) == "previous"
        assert not p.composer.has_pending
        p.notifier.deliver.assert_not_called()

    def test_webhook_failure_keeps_mail_and_transcript(self, pipeline):
        p = pipeline
        p.notifier.deliver.side_effect = DeliveryError("connection reset")
        record_and_stop(p)
        p.orchestrator.send()

        p.backend.tasks[0](BackendResponse(["hello", "world"], True), None)
        p.main_loop.run_pending()
        p.dispatcher.shutdown()

        assert persisted(p) == "hello world"
        assert p.composer.has_pending
        assert p.orchestrator.state.state == PipelineState.DELIVERED

    def test_mail_failure_does_not_skip_webhook(self, pipeline):
        p = pipeline
        p.composer.transport = MagicMock()
        p.composer.transport.send.side_effect = RuntimeError("unexpected relay failure")
        p.composer.auto_action = "send"
        record_and_stop(p)
        p.orchestrator.send()

        p.backend.tasks[0](BackendResponse(["hello", "world"], True), None)
        p.main_loop.run_pending()
        p.dispatcher.shutdown()

        assert persisted(p) == "hello world"
        p.notifier.deliver.assert_awaited_once()

    def test_racing_final_results(self, pipeline):
        p = pipeline
        record_and_stop(p)
        assert p.orchestrator.send() is True
        assert p.orchestrator.send() is True
        assert len(p.backend.tasks) == 2

        threads = [
            threading.Thread(target=callback, args=(BackendResponse([text], True), None))
            for callback, text in zip(p.backend.tasks, ["a", "b"])
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        p.main_loop.run_pending()

        assert persisted(p) in {"a", "b"}
        assert persisted(p) == p.orchestrator.state.transcript
        assert p.orchestrator.state.pending_transcriptions == set()
        assert p.orchestrator.state.state == PipelineState.DELIVERED

    def test_backend_error_returns_to_stopped(self, pipeline, status_events):
        p = pipeline
        record_and_stop(p)
        p.orchestrator.send()

        p.backend.tasks[0](None, "No speech detected")
        p.main_loop.run_pending()

        assert status_events.kinds()[-1] == "transcription_failed"
        assert p.orchestrator.state.state == PipelineState.STOPPED
        assert persisted(p) is None
        p.notifier.deliver.assert_not_called()

    def test_capture_failure_keeps_state(self, pipeline, status_events):
        p = pipeline
        p.capture.fail = True

        assert p.orchestrator.toggle_recording() is False

        assert p.orchestrator.state.state == PipelineState.IDLE
        assert p.orchestrator.state.session is None
        assert status_events.kinds() == ["capture_failed"]
        assert isinstance(status_events.events[0].error, CaptureError)

    def test_send_requires_finished_recording(self, pipeline, status_events):
        p = pipeline

        assert p.orchestrator.send() is False
        p.orchestrator.toggle_recording()
        assert p.orchestrator.state.can_send() is False
        assert p.orchestrator.send() is False
        p.orchestrator.toggle_recording()
        assert p.orchestrator.state.can_send() is True

        assert status_events.kinds().count("send_rejected") == 2
        assert p.backend.tasks == []

    def test_each_recording_gets_its_own_file(self, pipeline):
        p = pipeline
        record_and_stop(p)
        first = p.orchestrator.state.session.file_path
        record_and_stop(p)
        second = p.orchestrator.state.session.file_path

        assert first != second
        assert first.exists() and second.exists()

    def test_load_seeds_transcript(self, pipeline):
        p = pipeline
        p.settings.set_string(TRANSCRIBED_TEXT_KEY, "from last run")

        p.orchestrator.load()

        assert p.orchestrator.state.transcript == "from last run"


@pytest.mark.integration
def test_real_capture_enables_send(pipeline, mock_pyaudio, sample_audio_chunk):
    """AudioCapture over a mocked device produces a file Send accepts."""
    def read(*args, **kwargs):
        time.sleep(0.005)
        return sample_audio_chunk

    mock_pyaudio['stream'].read.side_effect = read
    p = pipeline
    p.orchestrator.capture = AudioCapture()

    p.orchestrator.toggle_recording()
    time.sleep(0.05)
    p.orchestrator.toggle_recording()

    assert p.orchestrator.state.can_send() is True
    assert p.orchestrator.send() is True
