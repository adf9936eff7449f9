"""
Engine event subscriptions.

Registers exactly one listener per EventKind and re-emits each event as a
typed Qt signal. Signals emitted from an engine thread reach receivers on the
GUI thread through Qt's queued delivery, so every consumer reaction runs on
the coordination thread, one at a time.
"""

from typing import Any, Callable, Dict, Iterator, List, Optional

from PySide6.QtCore import QObject, Signal

from ...utils.logger import get_logger
from .base import Unlisten
from .client import EngineClient
from .events import EventKind, EventPayload, parse_payload

logger = get_logger(__name__)


class _ReleaseOnce:
    """Unlisten handle that forwards to the engine at most once."""

    def __init__(self, kind: EventKind, unlisten: Unlisten):
        self._kind = kind
        self._unlisten: Optional[Unlisten] = unlisten

    @property
    def kind(self) -> EventKind:
        return self._kind

    @property
    def released(self) -> bool:
        return self._unlisten is None

    def __call__(self) -> None:
        unlisten, self._unlisten = self._unlisten, None
        if unlisten is None:
            return
        try:
            unlisten()
        except Exception as e:
            logger.warning(f"Failed to release {self._kind.value} listener: {e}")


class SubscriptionSet:
    """Unlisten handles acquired by one ``subscribe`` call."""

    def __init__(self) -> None:
        self._handles: List[_ReleaseOnce] = []
        self._released = False

    def add(self, kind: EventKind, unlisten: Unlisten) -> None:
        self._handles.append(_ReleaseOnce(kind, unlisten))

    @property
    def kinds(self) -> List[EventKind]:
        return [handle.kind for handle in self._handles]

    @property
    def released(self) -> bool:
        return self._released

    @property
    def active(self) -> bool:
        return not self._released and any(not h.released for h in self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[Callable[[], None]]:
        return iter(list(self._handles))

    def release(self) -> None:
        """Release every handle. Safe to call repeatedly."""
        if self._released:
            return
        self._released = True
        for handle in self._handles:
            handle()
        logger.debug(f"Released {len(self._handles)} engine event listeners")

    def __enter__(self) -> "SubscriptionSet":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class EventSubscriptionManager(QObject):
    """
    Routes engine events to the application's consumers.

    Signals:
        recording_started: Engine began capturing audio
        recording_stopped: Engine stopped capturing audio
        transcribing: Engine started transcribing the captured audio
        transcription_complete: Transcription finished (TranscriptionResult)
        error_reported: Engine reported an error (message)
        download_progress: Asset download progressed (DownloadProgress)
    """

    recording_started = Signal()
    recording_stopped = Signal()
    transcribing = Signal()
    transcription_complete = Signal(object)
    error_reported = Signal(str)
    download_progress = Signal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)

        self._emitters: Dict[EventKind, Callable[[EventPayload], None]] = {
            EventKind.RECORDING_STARTED: lambda _: self.recording_started.emit(),
            EventKind.RECORDING_STOPPED: lambda _: self.recording_stopped.emit(),
            EventKind.TRANSCRIBING: lambda _: self.transcribing.emit(),
            EventKind.TRANSCRIPTION_COMPLETE: self.transcription_complete.emit,
            EventKind.ERROR: lambda payload: self.error_reported.emit(payload.message),
            EventKind.DOWNLOAD_PROGRESS: self.download_progress.emit,
        }

    def subscribe(self, client: EngineClient) -> SubscriptionSet:
        """
        Register one listener per event kind.

        Returns an empty set in headless mode. A kind that fails to register is
        logged and skipped; the returned set holds only the listeners that were
        actually registered.
        """
        subscriptions = SubscriptionSet()

        if not client.is_attached:
            logger.debug("No engine attached, skipping event subscriptions")
            return subscriptions

        for kind in EventKind:
            handler = self._make_handler(kind, subscriptions)
            try:
                unlisten = client.listen(kind, handler)
            except Exception as e:
                logger.error(f"Could not subscribe to {kind.value} events: {e}")
                continue
            subscriptions.add(kind, unlisten)

        logger.info(f"Subscribed to {len(subscriptions)} engine event kinds")
        return subscriptions

    def _make_handler(
        self, kind: EventKind, subscriptions: SubscriptionSet
    ) -> Callable[..., None]:
        def handler(raw: Any = None) -> None:
            if subscriptions.released:
                logger.debug(f"Ignoring {kind.value} event after teardown")
                return
            self.dispatch(kind, raw)

        return handler

    def dispatch(self, kind: EventKind, raw: Any = None) -> None:
        try:
            payload = parse_payload(kind, raw)
        except ValueError as e:
            logger.warning(f"Dropping event: {e}")
            return

        logger.debug(f"Engine event: {kind.value}")
        self._emitters[kind](payload)
