"""
Recording lifecycle coordination.

User requests are turned into engine commands; the recording/transcribing
flags only change when the engine confirms a transition with an event.
"""

from typing import Optional

from PySide6.QtCore import QObject, Signal, Slot

from ..utils.logger import get_logger
from .engine.client import CommandResult, EngineClient
from .engine.events import TranscriptionResult
from .engine.worker import CommandRunner, ImmediateCommandRunner
from .history.history import TranscriptionEntry
from .settings.settings import InteractionMode
from .state import AppStateStore, LifecycleState

logger = get_logger(__name__)


class LifecycleStateMachine(QObject):
    """
    Idle -> Recording -> Transcribing -> Idle, driven by engine events.

    Signals:
        request_rejected: A user request was ignored (reason)
        command_failed: An engine command rejected (command, error)
    """

    request_rejected = Signal(str)
    command_failed = Signal(str, str)

    def __init__(
        self,
        store: AppStateStore,
        client: EngineClient,
        runner: Optional[CommandRunner] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._store = store
        self._client = client
        self._runner = runner or ImmediateCommandRunner()

        self._pending_command: Optional[str] = None
        self._pending_token: Optional[int] = None
        self._dispatch_count = 0
        # Push-to-talk key released before the engine confirmed the start
        self._stop_when_started = False

    @property
    def state(self) -> LifecycleState:
        return self._store.lifecycle

    @property
    def pending_command(self) -> Optional[str]:
        return self._pending_command

    def _interaction_mode(self) -> InteractionMode:
        settings = self._store.settings
        return settings.interaction_mode if settings else InteractionMode.TOGGLE

    def _reject(self, reason: str) -> bool:
        logger.info(f"Ignoring request: {reason}")
        self.request_rejected.emit(reason)
        return False

    def request_toggle(self) -> bool:
        """Start recording when idle, stop and transcribe when recording."""
        if self._store.is_transcribing:
            return self._reject("transcription in progress")
        if self._pending_command is not None:
            return self._reject(f"{self._pending_command} still pending")

        if self._store.is_recording:
            return self._dispatch("stop_recording_and_transcribe")
        return self._dispatch("start_recording")

    def request_start(self) -> bool:
        if self._store.is_transcribing:
            return self._reject("transcription in progress")
        if self._pending_command is not None:
            return self._reject(f"{self._pending_command} still pending")
        if self._store.is_recording:
            return self._reject("already recording")
        return self._dispatch("start_recording")

    def request_stop(self) -> bool:
        if self._pending_command == "start_recording":
            self._stop_when_started = True
            logger.debug("Stop requested before recording start was confirmed")
            return True
        if self._pending_command is not None:
            return self._reject(f"{self._pending_command} still pending")
        if not self._store.is_recording:
            return self._reject("not recording")
        return self._dispatch("stop_recording_and_transcribe")

    @Slot()
    def on_hotkey_pressed(self) -> None:
        if self._interaction_mode() is InteractionMode.PUSH_TO_TALK:
            self.request_start()
        else:
            self.request_toggle()

    @Slot()
    def on_hotkey_released(self) -> None:
        if self._interaction_mode() is InteractionMode.PUSH_TO_TALK:
            self.request_stop()

    def _dispatch(self, command: str) -> bool:
        call = getattr(self._client, command)
        self._dispatch_count += 1
        token = self._dispatch_count
        self._pending_command = command
        self._pending_token = token
        logger.debug(f"Dispatching {command}")
        self._runner.submit(
            command, call, lambda result: self._on_command_done(token, result)
        )
        return True

    def _on_command_done(self, token: int, result: CommandResult) -> None:
        if token != self._pending_token:
            # Pending slot was reset by an engine error or taken by a newer command
            logger.debug(f"Ignoring late result of {result.command}")
            return
        self._pending_command = None
        self._pending_token = None

        if result.ok:
            logger.debug(f"{result.command} acknowledged by engine")
        elif result.unavailable:
            logger.debug(f"{result.command} skipped, no engine attached")
        else:
            logger.warning(f"{result.command} failed: {result.error}")
            self.command_failed.emit(result.command, result.error or "")

        if result.command == "start_recording" and self._stop_when_started:
            # Otherwise on_recording_started issues the stop once the event lands
            if not result.ok:
                self._stop_when_started = False
            elif self._store.is_recording:
                self._stop_when_started = False
                self.request_stop()

    @Slot()
    def on_recording_started(self) -> None:
        if self._store.is_transcribing:
            logger.warning("Engine started recording while transcribing")
        self._store.set_lifecycle_flags(True, False)
        self._store.set_error(None)

        if self._stop_when_started and self._pending_command is None:
            self._stop_when_started = False
            self.request_stop()

    @Slot()
    def on_recording_stopped(self) -> None:
        self._store.set_lifecycle_flags(False, self._store.is_transcribing)

    @Slot()
    def on_transcribing(self) -> None:
        self._store.set_lifecycle_flags(False, True)

    @Slot(object)
    def on_transcription_complete(self, result: TranscriptionResult) -> None:
        logger.info(
            f"Transcription complete ({result.provider.value}, {result.duration_ms} ms): "
            f"'{result.text[:50]}{'...' if len(result.text) > 50 else ''}'"
        )
        self._store.set_lifecycle_flags(False, False)
        self._store.set_current_transcription(result.text)
        self._store.add_history_entry(TranscriptionEntry.from_result(result))

    @Slot(str)
    def on_error(self, message: str) -> None:
        logger.error(f"Engine reported error: {message}")
        if self._pending_command is not None:
            logger.debug(f"Dropping pending {self._pending_command} after engine error")
        self._pending_command = None
        self._pending_token = None
        self._stop_when_started = False
        self._store.set_lifecycle_flags(False, False)
        self._store.set_error(message)

    def load_initial_state(self) -> None:
        """Fetch settings, history, providers and recording state from the engine."""
        self._runner.submit(
            "get_settings", self._client.get_settings, self._on_settings_loaded
        )
        self._runner.submit(
            "get_history", self._client.get_history, self._on_history_loaded
        )
        self._runner.submit(
            "get_providers", self._client.get_providers, self._on_providers_loaded
        )
        self._runner.submit(
            "get_recording_state",
            self._client.get_recording_state,
            self._on_recording_state_loaded,
        )

    def _on_settings_loaded(self, result: CommandResult) -> None:
        self._store.set_settings(result.value)

    def _on_history_loaded(self, result: CommandResult) -> None:
        self._store.set_history(result.value)

    def _on_providers_loaded(self, result: CommandResult) -> None:
        self._store.set_providers(result.value)

    def _on_recording_state_loaded(self, result: CommandResult) -> None:
        if result.value and not self._store.is_transcribing:
            self._store.set_lifecycle_flags(True, False)
