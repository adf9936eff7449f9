"""Application runtime."""

import os
import signal
import sys
from typing import Optional

from PySide6.QtCore import QObject
from PySide6.QtWidgets import QApplication

from . import __app_name__, __version__
from .config import ENGINE_ENV_VAR
from .core.downloads import DownloadProgressTracker
from .core.engine import (
    CommandRunner,
    Engine,
    EngineClient,
    EventSubscriptionManager,
    ImmediateCommandRunner,
    SubscriptionSet,
    ThreadedCommandRunner,
    load_engine,
)
from .core.input import HotkeyListener
from .core.lifecycle import LifecycleStateMachine
from .core.settings import Settings
from .core.settings.reconciler import SettingsReconciler
from .core.state import AppStateStore
from .utils.logger import get_logger, install_qt_message_handler, shutdown_logging

logger = get_logger(__name__)


class WhisperLinkApp(QObject):

    def __init__(
        self,
        engine: Optional[Engine] = None,
        runner: Optional[CommandRunner] = None,
        hotkey_listener: Optional[HotkeyListener] = None,
    ):
        super().__init__()

        self._client = EngineClient(engine)
        if runner is None:
            runner = (
                ThreadedCommandRunner(self)
                if self._client.is_attached
                else ImmediateCommandRunner()
            )
        self._runner = runner

        self._store = AppStateStore(self)
        self._machine = LifecycleStateMachine(self._store, self._client, self._runner, self)
        self._reconciler = SettingsReconciler(self._store, self._client, self._runner, self)
        self._downloads = DownloadProgressTracker(
            self._client, self._runner, self._store, self
        )
        self._events = EventSubscriptionManager(self)
        self._hotkey_listener = hotkey_listener or HotkeyListener(parent=self)
        self._subscriptions: Optional[SubscriptionSet] = None
        self._running = False

        self._events.recording_started.connect(self._machine.on_recording_started)
        self._events.recording_stopped.connect(self._machine.on_recording_stopped)
        self._events.transcribing.connect(self._machine.on_transcribing)
        self._events.transcription_complete.connect(
            self._machine.on_transcription_complete
        )
        self._events.error_reported.connect(self._machine.on_error)
        self._events.download_progress.connect(self._downloads.on_progress)

        self._hotkey_listener.hotkey_pressed.connect(self._machine.on_hotkey_pressed)
        self._hotkey_listener.hotkey_released.connect(self._machine.on_hotkey_released)

        self._store.settings_changed.connect(self._on_settings_changed)

    @property
    def client(self) -> EngineClient:
        return self._client

    @property
    def store(self) -> AppStateStore:
        return self._store

    @property
    def machine(self) -> LifecycleStateMachine:
        return self._machine

    @property
    def reconciler(self) -> SettingsReconciler:
        return self._reconciler

    @property
    def downloads(self) -> DownloadProgressTracker:
        return self._downloads

    @property
    def events(self) -> EventSubscriptionManager:
        return self._events

    @property
    def subscriptions(self) -> Optional[SubscriptionSet]:
        return self._subscriptions

    def clear_history(self) -> None:
        self._store.clear_history(self._client, self._runner)

    def _on_settings_changed(self, settings: Settings) -> None:
        self._hotkey_listener.update_accelerator(settings.hotkey)

    def run(self) -> None:
        logger.info(f"Starting {__app_name__} v{__version__}")
        if not self._client.is_attached:
            logger.info("No engine attached, running headless")

        self._subscriptions = self._events.subscribe(self._client)
        self._running = True
        try:
            self._machine.load_initial_state()
            self._hotkey_listener.start()
        except Exception:
            self.shutdown()
            raise

        logger.info("Application initialization complete")

    def shutdown(self) -> None:
        if not self._running:
            return
        self._running = False

        logger.info("Shutting down application")
        if self._subscriptions is not None:
            self._subscriptions.release()
        self._hotkey_listener.stop()
        self._runner.wait_for_all()
        logger.info("Application shutdown complete")


def main():
    install_qt_message_handler()
    app = QApplication(sys.argv)
    app.setApplicationName(__app_name__)
    app.setQuitOnLastWindowClosed(False)
    signal.signal(signal.SIGINT, lambda *args: QApplication.quit())

    engine = load_engine(os.environ.get(ENGINE_ENV_VAR))

    whisperlink_app = WhisperLinkApp(engine=engine)
    app.aboutToQuit.connect(whisperlink_app.shutdown)
    whisperlink_app.run()

    exit_code = app.exec()
    whisperlink_app.shutdown()
    shutdown_logging()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
