"""
Application state aggregate.

One ApplicationState is owned by an AppStateStore living on the GUI thread.
Consumers read it through the store's properties and change it only through
the store's named actions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from PySide6.QtCore import QObject, Signal

from ..utils.logger import get_logger
from .downloads.assets import AssetStatus
from .history.history import BoundedHistory, TranscriptionEntry
from .settings.settings import ProviderInfo, Settings

if TYPE_CHECKING:
    from .engine.client import CommandResult, EngineClient
    from .engine.worker import CommandRunner

logger = get_logger(__name__)


class ActiveView(Enum):
    HOME = "home"
    HISTORY = "history"
    SETTINGS = "settings"


class LifecycleState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


@dataclass
class ApplicationState:
    is_recording: bool = False
    is_transcribing: bool = False
    settings: Optional[Settings] = None
    history: BoundedHistory = field(default_factory=BoundedHistory)
    providers: List[ProviderInfo] = field(default_factory=list)
    current_transcription: str = ""
    error: Optional[str] = None
    active_view: ActiveView = ActiveView.HOME
    asset_status: Optional[AssetStatus] = None

    @property
    def lifecycle(self) -> LifecycleState:
        if self.is_recording:
            return LifecycleState.RECORDING
        if self.is_transcribing:
            return LifecycleState.TRANSCRIBING
        return LifecycleState.IDLE


class AppStateStore(QObject):
    """
    Owner of the ApplicationState.

    Signals:
        state_changed: Emitted after any action changed the state
        lifecycle_changed: Recording/transcribing flags changed (LifecycleState)
        settings_changed: Canonical settings replaced (Settings)
        history_changed: History entries changed
        history_clear_failed: The engine rejected clearing the history (error)
        error_changed: Error slot changed (message or None)
    """

    state_changed = Signal()
    lifecycle_changed = Signal(object)
    settings_changed = Signal(object)
    history_changed = Signal()
    history_clear_failed = Signal(str)
    error_changed = Signal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._state = ApplicationState()

    @property
    def is_recording(self) -> bool:
        return self._state.is_recording

    @property
    def is_transcribing(self) -> bool:
        return self._state.is_transcribing

    @property
    def lifecycle(self) -> LifecycleState:
        return self._state.lifecycle

    @property
    def settings(self) -> Optional[Settings]:
        return self._state.settings

    @property
    def history(self) -> List[TranscriptionEntry]:
        return self._state.history.entries

    @property
    def providers(self) -> List[ProviderInfo]:
        return list(self._state.providers)

    @property
    def current_transcription(self) -> str:
        return self._state.current_transcription

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def active_view(self) -> ActiveView:
        return self._state.active_view

    @property
    def asset_status(self) -> Optional[AssetStatus]:
        return self._state.asset_status

    def set_lifecycle_flags(self, is_recording: bool, is_transcribing: bool) -> None:
        if is_recording and is_transcribing:
            raise ValueError("Cannot be recording and transcribing at the same time")

        if (is_recording, is_transcribing) == (
            self._state.is_recording,
            self._state.is_transcribing,
        ):
            return

        self._state.is_recording = is_recording
        self._state.is_transcribing = is_transcribing
        logger.debug(f"Lifecycle -> {self._state.lifecycle.value}")
        self.lifecycle_changed.emit(self._state.lifecycle)
        self.state_changed.emit()

    def set_settings(self, settings: Settings) -> None:
        self._state.settings = settings
        self.settings_changed.emit(settings)
        self.state_changed.emit()

    def set_providers(self, providers: List[ProviderInfo]) -> None:
        self._state.providers = list(providers)
        self.state_changed.emit()

    def set_history(self, entries: List[TranscriptionEntry]) -> None:
        self._state.history.replace(entries)
        self.history_changed.emit()
        self.state_changed.emit()

    def add_history_entry(self, entry: TranscriptionEntry) -> None:
        self._state.history.append(entry)
        self.history_changed.emit()
        self.state_changed.emit()

    def clear_history(
        self,
        client: "EngineClient",
        runner: "CommandRunner",
        on_done: Optional[Callable[["CommandResult"], None]] = None,
    ) -> None:
        """
        Ask the engine to clear its history; the local copy follows once it answers.

        The command runs on ``runner`` so a slow engine never blocks the caller.
        """

        def finished(result: "CommandResult") -> None:
            self._on_history_cleared(result)
            if on_done is not None:
                on_done(result)

        runner.submit("clear_history", client.clear_history, finished)

    def _on_history_cleared(self, result: "CommandResult") -> None:
        if self._state.history.apply_clear(result):
            self.history_changed.emit()
            self.state_changed.emit()
        else:
            self.history_clear_failed.emit(result.error or "")

    def set_current_transcription(self, text: str) -> None:
        self._state.current_transcription = text
        self.state_changed.emit()

    def set_error(self, error: Optional[str]) -> None:
        if error == self._state.error:
            return
        self._state.error = error
        self.error_changed.emit(error)
        self.state_changed.emit()

    def dismiss_error(self) -> None:
        self.set_error(None)

    def set_active_view(self, view: ActiveView) -> None:
        self._state.active_view = view
        self.state_changed.emit()

    def set_asset_status(self, status: Optional[AssetStatus]) -> None:
        self._state.asset_status = status
        self.state_changed.emit()
