"""Microphone capture that streams linear PCM into a WAV file."""

import pyaudio
import wave
import logging
from pathlib import Path
from threading import Thread, Event
from typing import Optional
from datetime import datetime
import numpy as np

from ..exceptions import CaptureError
from ..models.audio import AudioStats


logger = logging.getLogger(__name__)


class AudioCapture:
    """Record the default input device into one WAV file, stop on demand."""

    def __init__(
        self,
        sample_rate: int = 44100,
        chunk_size: int = 1024,
        channels: int = 2,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            sample_rate: Audio sample rate (44.1kHz)
            chunk_size: Size of each audio chunk in frames
            channels: Number of audio channels (2 for stereo)
            format: Audio sample format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        self.file_path: Optional[Path] = None

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self._stream = None
        self._wave_file: Optional[wave.Wave_write] = None

    def start(self, file_path: Path) -> Path:
        """Open the input stream and the WAV file, then record in the background.

        Raises:
            CaptureError: if already recording or the device/file cannot be opened.
        """
        if self.is_recording:
            raise CaptureError("Recording already in progress")

        file_path = Path(file_path)
        logger.info(f"Starting audio recording to {file_path}")
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            self._open_audio_stream()
            self._open_wave_file(file_path)
        except Exception as e:
            self._release()
            logger.error(f"Recording failed: {e}")
            raise CaptureError(f"Recording failed: {e}") from e

        self.file_path = file_path
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.peak_level = 0.0

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.is_recording = True
        self.recording_thread.start()
        return file_path

    def stop(self) -> None:
        """Stop recording and release the recorder. No-op when idle."""
        if not self.is_recording:
            logger.warning("No recording in progress")
            return

        logger.info("Stopping audio recording")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        self._release()
        self.is_recording = False
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}; file: {self.file_path}")

    def _open_audio_stream(self) -> None:
        self.pyaudio_instance = pyaudio.PyAudio()
        self._stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, {self.channels} channels, "
                    f"{self.chunk_size} frames/chunk")

    def _open_wave_file(self, file_path: Path) -> None:
        self._wave_file = wave.open(str(file_path), 'wb')
        self._wave_file.setnchannels(self.channels)
        self._wave_file.setsampwidth(self.pyaudio_instance.get_sample_size(self.format))
        self._wave_file.setframerate(self.sample_rate)

    def _record_continuously(self) -> None:
        """Internal method: copy chunks from the stream into the file until stopped."""
        try:
            while not self.stop_event.is_set():
                audio_chunk = self._stream.read(self.chunk_size, exception_on_overflow=False)
                self._wave_file.writeframes(audio_chunk)
                self.total_chunks += 1
                self._update_peak_level(audio_chunk)
        except Exception as e:
            logger.error(f"Error while recording: {e}", exc_info=True)
            self.stop_event.set()

    def _update_peak_level(self, audio_chunk: bytes) -> None:
        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size:
            self.peak_level = float(np.abs(samples.astype(np.int32)).max()) / 32768.0

    def _release(self) -> None:
        """Close the stream, the WAV file and PyAudio, whichever are open."""
        if self._stream is not None:
            try:
                self._stream.stop_stream()
                self._stream.close()
            except Exception as e:
                logger.warning(f"Error closing audio stream: {e}")
            self._stream = None
        if self._wave_file is not None:
            self._wave_file.close()
            self._wave_file = None
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            channels=self.channels,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )

    def __del__(self):
        """Ensure resources are cleaned up on deletion."""
        if self.is_recording:
            self.stop()
