"""
Fallible command wrapper around the engine.

Every command returns a CommandResult instead of raising. Commands with a
documented fallback carry it as the result value when the engine is missing
or rejects the call.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

from pydantic import StrictBool, TypeAdapter

from ...utils.logger import get_logger
from ..downloads.assets import AssetStatus
from ..history.history import TranscriptionEntry
from ..settings.settings import (
    AudioDevice,
    ProviderInfo,
    Settings,
    default_providers,
    default_settings,
)
from .base import Engine, EngineError, EventHandler, Unlisten
from .events import EventKind

logger = get_logger(__name__)

T = TypeVar("T")

# Only a real boolean counts; "false" or 0 must not read as recording
_RECORDING_STATE = TypeAdapter(StrictBool)


@dataclass(frozen=True)
class CommandResult(Generic[T]):
    command: str
    value: Optional[T] = None
    error: Optional[str] = None
    unavailable: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.unavailable

    @classmethod
    def success(cls, command: str, value: Optional[T] = None) -> "CommandResult[T]":
        return cls(command=command, value=value)

    @classmethod
    def failure(
        cls, command: str, error: str, fallback: Optional[T] = None
    ) -> "CommandResult[T]":
        return cls(command=command, value=fallback, error=error)

    @classmethod
    def not_attached(
        cls, command: str, fallback: Optional[T] = None
    ) -> "CommandResult[T]":
        return cls(command=command, value=fallback, unavailable=True)


def _validate_each(model, items: Any, what: str) -> list:
    if not isinstance(items, list):
        raise TypeError(f"Expected a list of {what}, got {type(items).__name__}")

    valid = []
    for item in items:
        try:
            valid.append(model.model_validate(item))
        except Exception as e:
            logger.warning(f"Skipping malformed {what}: {e}")
    return valid


class EngineClient:
    """Issues engine commands; ``engine=None`` is headless mode."""

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine

    @property
    def engine(self) -> Optional[Engine]:
        return self._engine

    @property
    def is_attached(self) -> bool:
        return self._engine is not None

    def _call(
        self,
        command: str,
        invoke: Callable[[Engine], Any],
        convert: Optional[Callable[[Any], T]] = None,
        fallback: Optional[Callable[[], T]] = None,
    ) -> CommandResult[T]:
        if self._engine is None:
            logger.debug(f"No engine attached, {command} resolves to its fallback")
            return CommandResult.not_attached(command, fallback() if fallback else None)

        try:
            raw = invoke(self._engine)
            value = convert(raw) if convert else raw
        except EngineError as e:
            logger.warning(f"Engine rejected {command}: {e}")
            return CommandResult.failure(command, str(e), fallback() if fallback else None)
        except Exception as e:
            logger.error(f"Command {command} failed: {e}", exc_info=True)
            return CommandResult.failure(command, str(e), fallback() if fallback else None)

        return CommandResult.success(command, value)

    def start_recording(self) -> CommandResult[None]:
        return self._call("start_recording", lambda e: e.start_recording())

    def stop_recording_and_transcribe(self) -> CommandResult[str]:
        return self._call(
            "stop_recording_and_transcribe",
            lambda e: e.stop_recording_and_transcribe(),
            convert=str,
        )

    def get_recording_state(self) -> CommandResult[bool]:
        return self._call(
            "get_recording_state",
            lambda e: e.get_recording_state(),
            convert=_RECORDING_STATE.validate_python,
            fallback=lambda: False,
        )

    def get_settings(self) -> CommandResult[Settings]:
        return self._call(
            "get_settings",
            lambda e: e.get_settings(),
            convert=Settings.from_engine,
            fallback=default_settings,
        )

    def save_settings(self, settings: Settings) -> CommandResult[None]:
        payload = settings.to_engine()
        return self._call("save_settings", lambda e: e.save_settings(payload))

    def get_history(self) -> CommandResult[List[TranscriptionEntry]]:
        return self._call(
            "get_history",
            lambda e: e.get_history(),
            convert=lambda raw: _validate_each(TranscriptionEntry, raw, "history entry"),
            fallback=list,
        )

    def clear_history(self) -> CommandResult[None]:
        return self._call("clear_history", lambda e: e.clear_history())

    def get_providers(self) -> CommandResult[List[ProviderInfo]]:
        return self._call(
            "get_providers",
            lambda e: e.get_providers(),
            convert=lambda raw: _validate_each(ProviderInfo, raw, "provider"),
            fallback=default_providers,
        )

    def list_input_devices(self) -> CommandResult[List[AudioDevice]]:
        return self._call(
            "list_input_devices",
            lambda e: e.list_input_devices(),
            convert=lambda raw: _validate_each(AudioDevice, raw, "input device"),
            fallback=list,
        )

    def get_asset_status(self) -> CommandResult[AssetStatus]:
        return self._call(
            "get_asset_status",
            lambda e: e.get_asset_status(),
            convert=AssetStatus.model_validate,
        )

    def download_asset(self, kind: str, name: str) -> CommandResult[str]:
        return self._call(
            "download_asset",
            lambda e: e.download_asset(kind, name),
            convert=str,
        )

    def listen(self, kind: EventKind, handler: EventHandler) -> Unlisten:
        """Register an event handler; raises if no engine is attached or it refuses."""
        if self._engine is None:
            raise EngineError("No engine attached")
        return self._engine.listen(kind.value, handler)
