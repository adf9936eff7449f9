"""WhisperLink - desktop coordinator for an external transcription engine."""

__app_name__ = "WhisperLink"
__version__ = "0.1.0"
