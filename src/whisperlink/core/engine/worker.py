"""Runs engine commands without blocking the Qt event loop."""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from PySide6.QtCore import QDeadlineTimer, QObject, QThread, Signal, Slot

from ...config import SHUTDOWN_COMMAND_WAIT_MS
from ...utils.logger import get_logger
from .client import CommandResult

logger = get_logger(__name__)

CommandCall = Callable[[], CommandResult]
CommandCallback = Callable[[CommandResult], None]


class CommandThread(QThread):
    """
    Thread for a single engine command.

    Signals:
        completed: Emitted with the CommandResult once the command returns
    """

    completed = Signal(object)

    def __init__(self, name: str, call: CommandCall, parent=None):
        super().__init__(parent)
        self._name = name
        self._call = call

    @property
    def name(self) -> str:
        return self._name

    def run(self):
        logger.debug(f"Running command {self._name} in background")
        self.completed.emit(self._call())


class CommandRunner(ABC):
    """Dispatches a command and hands its result back on the coordination thread."""

    @abstractmethod
    def submit(self, name: str, call: CommandCall, on_done: CommandCallback) -> None: ...

    def wait_for_all(self, timeout_ms: Optional[int] = None) -> List[str]:
        """Wait for in-flight commands; returns the names of those still running."""
        return []


class ImmediateCommandRunner(CommandRunner):
    """Runs commands inline. Used headless, where every command returns at once."""

    def submit(self, name: str, call: CommandCall, on_done: CommandCallback) -> None:
        on_done(call())


class _ResultRelay(QObject):
    """Receives CommandThread signals on the thread that owns the runner."""

    def __init__(self, runner: "ThreadedCommandRunner", parent: Optional[QObject] = None):
        super().__init__(parent)
        self._runner = runner

    @Slot(object)
    def on_completed(self, result: CommandResult) -> None:
        self._runner._deliver(self.sender(), result)

    @Slot()
    def on_finished(self) -> None:
        self._runner._retire(self.sender())


class ThreadedCommandRunner(CommandRunner):
    """
    Runs each command on its own CommandThread.

    Results are delivered through a queued signal, so callbacks run on the
    thread that owns the runner. No timeout is applied to pending commands;
    only shutdown stops waiting for them.
    """

    def __init__(self, parent: Optional[QObject] = None):
        self._relay = _ResultRelay(self, parent)
        self._callbacks: Dict[CommandThread, CommandCallback] = {}

    @property
    def pending_count(self) -> int:
        return len(self._callbacks)

    def submit(self, name: str, call: CommandCall, on_done: CommandCallback) -> None:
        thread = CommandThread(name, call)
        self._callbacks[thread] = on_done
        thread.completed.connect(self._relay.on_completed)
        thread.finished.connect(self._relay.on_finished)
        thread.start()

    def _deliver(self, thread: CommandThread, result: CommandResult) -> None:
        callback = self._callbacks.get(thread)
        if callback is None:
            logger.warning(f"Dropping result of unknown command {result.command}")
            return
        callback(result)

    def _retire(self, thread: CommandThread) -> None:
        self._callbacks.pop(thread, None)
        thread.deleteLater()

    def wait_for_all(self, timeout_ms: Optional[int] = None) -> List[str]:
        """
        Wait up to ``timeout_ms`` in total for the running commands.

        Commands that are still running afterwards are logged and left alone;
        their results are still delivered if they ever return.
        """
        if timeout_ms is None:
            timeout_ms = SHUTDOWN_COMMAND_WAIT_MS
        deadline = QDeadlineTimer(timeout_ms)

        still_running = [
            thread.name for thread in list(self._callbacks) if not thread.wait(deadline)
        ]
        if still_running:
            logger.warning(
                f"Gave up waiting for engine commands after {timeout_ms} ms: "
                f"{', '.join(still_running)}"
            )
        return still_running
