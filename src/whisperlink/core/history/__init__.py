from .history import BoundedHistory, TranscriptionEntry

__all__ = ["BoundedHistory", "TranscriptionEntry"]
