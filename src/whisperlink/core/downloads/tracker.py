"""Progress of asset downloads running inside the engine."""

from typing import TYPE_CHECKING, Dict, Optional

from PySide6.QtCore import QObject, Signal, Slot

from ...utils.logger import get_logger
from .assets import ASSET_KIND_MODEL, format_progress_line

if TYPE_CHECKING:
    from ..engine.client import CommandResult, EngineClient
    from ..engine.events import DownloadProgress
    from ..engine.worker import CommandRunner
    from ..state import AppStateStore

logger = get_logger(__name__)


class DownloadProgressTracker(QObject):
    """
    Keeps one progress line per downloading item.

    Items are independent of each other; a newer event for an item replaces
    its line. When an item reports ``done`` its line is dropped and the asset
    status is reloaded from the engine, which knows whether the file landed.

    Signals:
        progress_changed: An item's line changed (item, line)
        item_finished: An item's download stream ended (item)
        download_failed: The download command for an item rejected (item, error)
        asset_status_changed: Asset status reloaded (AssetStatus)
    """

    progress_changed = Signal(str, str)
    item_finished = Signal(str)
    download_failed = Signal(str, str)
    asset_status_changed = Signal(object)

    def __init__(
        self,
        client: "EngineClient",
        runner: "CommandRunner",
        store: Optional["AppStateStore"] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._client = client
        self._runner = runner
        self._store = store
        self._lines: Dict[str, str] = {}

    @property
    def lines(self) -> Dict[str, str]:
        return dict(self._lines)

    def line_for(self, item: str) -> Optional[str]:
        return self._lines.get(item)

    def is_downloading(self, item: str) -> bool:
        return item in self._lines

    @Slot(object)
    def on_progress(self, progress: "DownloadProgress") -> None:
        item = progress.item

        if progress.done:
            self._lines.pop(item, None)
            if progress.error:
                logger.error(f"Download of {item} ended with error: {progress.error}")
            else:
                logger.info(f"Download of {item} finished ({progress.downloaded_bytes} bytes)")
            self.item_finished.emit(item)
            self.refresh_asset_status()
            return

        if item not in self._lines:
            logger.debug(f"Tracking download of {item}")

        line = format_progress_line(progress.downloaded_bytes, progress.total_bytes)
        self._lines[item] = line
        self.progress_changed.emit(item, line)

    def download(self, kind: str, name: str, item: Optional[str] = None) -> None:
        """
        Ask the engine to download an asset; progress arrives as events.

        Progress events name the asset by ``item``, which for a model is its
        display name rather than its file name. When ``item`` is omitted it is
        looked up in the known asset status.
        """
        item = item or self._progress_item(kind, name)
        logger.info(f"Requesting download of {kind} {name}")
        self._runner.submit(
            "download_asset",
            lambda: self._client.download_asset(kind, name),
            lambda result: self._on_download_finished(name, item, result),
        )

    def _progress_item(self, kind: str, name: str) -> str:
        status = self._store.asset_status if self._store is not None else None
        if kind == ASSET_KIND_MODEL and status is not None:
            model = status.get_model(name)
            if model is not None:
                return model.name
        return name

    def _on_download_finished(self, name: str, item: str, result: "CommandResult") -> None:
        if result.ok:
            logger.info(f"Downloaded {name} to {result.value}")
            return

        error = result.error or "No engine attached"
        logger.warning(f"Download of {name} failed: {error}")
        if self._lines.pop(item, None) is not None:
            self.item_finished.emit(item)
        self.download_failed.emit(name, error)

    def refresh_asset_status(self) -> None:
        self._runner.submit(
            "get_asset_status", self._client.get_asset_status, self._on_asset_status
        )

    def _on_asset_status(self, result: "CommandResult") -> None:
        if not result.ok:
            logger.debug(f"Asset status unavailable: {result.error}")
            return

        if self._store is not None:
            self._store.set_asset_status(result.value)
        self.asset_status_changed.emit(result.value)
