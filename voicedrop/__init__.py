"""VoiceDrop - record, transcribe and deliver voice notes."""

__version__ = "0.1.0"
