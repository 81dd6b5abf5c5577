"""Pytest configuration and fixtures for VoiceDrop tests."""

import pytest
import tempfile
import logging
import wave
from pathlib import Path
from unittest.mock import Mock, patch
import numpy as np
from pubsub import pub


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
CHANNELS = 2


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware or network")
    config.addinivalue_line("markers", "integration: multi-component pipeline tests")


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop listeners registered by a test so they cannot leak into the next one."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """1024 stereo frames of a 440 Hz sine wave, 16-bit interleaved."""
    t = np.linspace(0, 1024 / SAMPLE_RATE, 1024, False)
    mono = (np.sin(2 * np.pi * 440 * t) * 32767).astype(np.int16)
    return np.repeat(mono, CHANNELS).tobytes()


def write_wav(path, frames: bytes, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(frames)
    return path


@pytest.fixture
def sample_audio_file(temp_data_dir, sample_audio_chunk):
    """Create a short stereo WAV file."""
    return write_wav(Path(temp_data_dir) / "sample.wav", sample_audio_chunk * 20)


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # 1024 stereo 16-bit frames of silence
        mock_stream.read.return_value = b'\x00' * 4096
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.get_sample_size.return_value = 2

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


class EventCollector:
    """Strong-referenced pubsub listener that records messages."""

    def __init__(self):
        self.events = []
        self.results = []

    def on_event(self, event):
        self.events.append(event)

    def on_result(self, result):
        self.results.append(result)

    def kinds(self):
        return [event.kind for event in self.events]


@pytest.fixture
def status_events():
    """Collect PipelineEvents published on the status topic."""
    collector = EventCollector()
    pub.subscribe(collector.on_event, "pipeline.status")
    return collector


@pytest.fixture
def wav_writer():
    """Function fixture that writes a WAV file and returns its path."""
    return write_wav


@pytest.fixture
def event_collector():
    """Factory for listeners that must stay referenced for pubsub."""
    return EventCollector
