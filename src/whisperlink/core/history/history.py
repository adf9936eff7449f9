"""
Transcription history kept in memory, newest first.

The engine persists the history; this cache mirrors it for display and is
capped at MAX_HISTORY_ENTRIES.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...config import MAX_HISTORY_ENTRIES
from ...utils.logger import get_logger
from ..settings.settings import ProviderId

if TYPE_CHECKING:
    from ..engine.client import CommandResult
    from ..engine.events import TranscriptionResult

logger = get_logger(__name__)


class TranscriptionEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    text: str
    provider: ProviderId
    timestamp: str  # ISO format datetime
    duration_ms: int = Field(ge=0)
    language: Optional[str] = None

    @classmethod
    def from_result(cls, result: "TranscriptionResult") -> "TranscriptionEntry":
        return cls(
            id=str(uuid.uuid4()),
            text=result.text,
            provider=result.provider,
            timestamp=datetime.now(timezone.utc).isoformat(),
            duration_ms=result.duration_ms,
            language=result.language,
        )


class BoundedHistory:
    """Newest-first sequence of entries that silently drops anything past ``capacity``."""

    def __init__(self, capacity: int = MAX_HISTORY_ENTRIES):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._entries: List[TranscriptionEntry] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def entries(self) -> List[TranscriptionEntry]:
        return list(self._entries)

    @property
    def latest(self) -> Optional[TranscriptionEntry]:
        return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptionEntry]:
        return iter(list(self._entries))

    def append(self, entry: TranscriptionEntry) -> None:
        self._entries.insert(0, entry)
        self.evict_overflow()

    def replace(self, entries: Iterable[TranscriptionEntry]) -> None:
        self._entries = list(entries)
        self.evict_overflow()

    def evict_overflow(self) -> List[TranscriptionEntry]:
        """Drop the oldest entries beyond capacity and return them."""
        evicted = self._entries[self._capacity :]
        if evicted:
            del self._entries[self._capacity :]
            logger.debug(f"Evicted {len(evicted)} history entries over capacity")
        return evicted

    def clear(self) -> None:
        self._entries.clear()

    def apply_clear(self, result: "CommandResult") -> bool:
        """
        Clear the local copy once the engine answered a clear_history command.

        The local entries are kept when the engine rejects the clear so the two
        never diverge. Without an engine there is nothing persisted to keep in
        sync and the local copy is cleared. Returns whether anything was cleared.
        """
        if result.ok or result.unavailable:
            self.clear()
            return True
        logger.error(f"Failed to clear history: {result.error}")
        return False
