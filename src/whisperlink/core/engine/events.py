"""Engine event kinds and their typed payloads."""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..settings.settings import ProviderId


class EventKind(str, Enum):
    RECORDING_STARTED = "recording-started"
    RECORDING_STOPPED = "recording-stopped"
    TRANSCRIBING = "transcribing"
    TRANSCRIPTION_COMPLETE = "transcription-complete"
    ERROR = "error"
    DOWNLOAD_PROGRESS = "download-progress"


class TranscriptionResult(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    text: str
    provider: ProviderId
    duration_ms: int = Field(ge=0)
    language: Optional[str] = None


class EngineErrorPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    message: str


class DownloadProgress(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    item: str
    downloaded_bytes: int = Field(default=0, ge=0)
    total_bytes: Optional[int] = Field(default=None, ge=0)
    done: bool = False
    error: Optional[str] = None


EventPayload = Union[None, TranscriptionResult, EngineErrorPayload, DownloadProgress]

_PAYLOAD_MODELS = {
    EventKind.TRANSCRIPTION_COMPLETE: TranscriptionResult,
    EventKind.ERROR: EngineErrorPayload,
    EventKind.DOWNLOAD_PROGRESS: DownloadProgress,
}


def parse_payload(kind: EventKind, raw: Any) -> EventPayload:
    """
    Validate the raw payload delivered with an event of ``kind``.

    Raises:
        ValueError: If the payload does not match the kind's model.
    """
    model = _PAYLOAD_MODELS.get(kind)
    if model is None:
        return None

    if isinstance(raw, model):
        return raw

    # The engine reports some errors as a bare string
    if kind is EventKind.ERROR and isinstance(raw, str):
        raw = {"message": raw}

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Malformed {kind.value} payload: {e}") from e
