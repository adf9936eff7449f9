"""
Draft/canonical settings reconciliation.

The canonical settings are the last value the engine confirmed saving; the
draft is the copy being edited. The draft is rebuilt from canonical whenever
canonical changes.
"""

from typing import Any, List, Optional

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from ...config import SAVED_FLAG_DURATION_MS
from ...utils.logger import get_logger
from ..engine.client import CommandResult, EngineClient
from ..engine.worker import CommandRunner, ImmediateCommandRunner
from ..state import AppStateStore
from .settings import AudioDevice, ProviderConfig, Settings, default_settings

logger = get_logger(__name__)


class SettingsReconciler(QObject):
    """
    Signals:
        draft_changed: Draft settings replaced (Settings)
        saving_changed: A save started or finished (bool)
        saved_changed: The transient "saved" flag was raised or cleared (bool)
        save_failed: The engine rejected a save (error message)
        input_devices_changed: Input device list refreshed (list of AudioDevice)
    """

    draft_changed = Signal(object)
    saving_changed = Signal(bool)
    saved_changed = Signal(bool)
    save_failed = Signal(str)
    input_devices_changed = Signal(object)

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

        self._draft: Settings = (store.settings or default_settings()).model_copy(
            deep=True
        )
        self._saving = False
        self._saved = False
        self._input_devices: List[AudioDevice] = []

        self._saved_timer = QTimer(self)
        self._saved_timer.setSingleShot(True)
        self._saved_timer.setInterval(SAVED_FLAG_DURATION_MS)
        self._saved_timer.timeout.connect(self._clear_saved)

        self._store.settings_changed.connect(self._on_canonical_changed)

    @property
    def canonical(self) -> Optional[Settings]:
        return self._store.settings

    @property
    def draft(self) -> Settings:
        return self._draft

    @property
    def is_dirty(self) -> bool:
        canonical = self.canonical
        return canonical is None or canonical != self._draft

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def is_saved(self) -> bool:
        return self._saved

    @property
    def input_devices(self) -> List[AudioDevice]:
        return list(self._input_devices)

    @Slot(object)
    def _on_canonical_changed(self, settings: Settings) -> None:
        self._set_draft(settings.model_copy(deep=True))

    def _set_draft(self, draft: Settings) -> None:
        self._draft = draft
        self.draft_changed.emit(draft)

    def update_field(self, key: str, value: Any) -> bool:
        """Replace one top-level field of the draft; other fields are untouched."""
        if key not in Settings.model_fields:
            logger.warning(f"Ignoring update of unknown settings field {key!r}")
            return False
        if key == "provider_configs":
            logger.warning("Use update_provider_config to change provider options")
            return False

        try:
            updated = Settings.model_validate({**self._draft.model_dump(), key: value})
        except Exception as e:
            logger.warning(f"Rejected {key}={value!r}: {e}")
            return False

        self._set_draft(updated)
        return True

    def update_provider_config(
        self, provider_id: str, field: str, value: Optional[str]
    ) -> bool:
        """
        Set one option of one provider's configuration in the draft.

        The provider entry is created when missing. An empty string is stored
        as None (unset).
        """
        if field not in ProviderConfig.model_fields:
            logger.warning(f"Ignoring unknown provider option {field!r}")
            return False

        key = getattr(provider_id, "value", provider_id)
        configs = {
            pid: config.model_copy() for pid, config in self._draft.provider_configs.items()
        }
        current = configs.get(key, ProviderConfig())

        try:
            configs[key] = ProviderConfig.model_validate(
                {**current.model_dump(), field: value}
            )
        except Exception as e:
            logger.warning(f"Rejected {key}.{field}: {e}")
            return False

        self._set_draft(self._draft.model_copy(update={"provider_configs": configs}))
        return True

    def discard_changes(self) -> None:
        self._set_draft((self.canonical or default_settings()).model_copy(deep=True))

    def save(self) -> bool:
        """
        Send the draft to the engine.

        Returns False when a save is already in flight. The outcome is reported
        through ``saved_changed`` / ``save_failed``.
        """
        if self._saving:
            logger.debug("Save already in progress")
            return False

        snapshot = self._draft.model_copy(deep=True)
        self._set_saving(True)
        self._runner.submit(
            "save_settings",
            lambda: self._client.save_settings(snapshot),
            lambda result: self._on_save_finished(snapshot, result),
        )
        return True

    def _on_save_finished(self, snapshot: Settings, result: CommandResult) -> None:
        self._set_saving(False)

        if not result.ok:
            error = result.error or "No engine attached"
            logger.warning(f"Failed to save settings: {error}")
            self.save_failed.emit(error)
            return

        logger.info("Settings saved")
        self._store.set_settings(snapshot)
        self._set_saved(True)
        self._saved_timer.start()

    def _set_saving(self, saving: bool) -> None:
        self._saving = saving
        self.saving_changed.emit(saving)

    def _set_saved(self, saved: bool) -> None:
        if saved == self._saved:
            return
        self._saved = saved
        self.saved_changed.emit(saved)

    @Slot()
    def _clear_saved(self) -> None:
        self._set_saved(False)

    def refresh_options(self) -> None:
        """Reload the provider list and the available input devices."""
        self._runner.submit(
            "get_providers",
            self._client.get_providers,
            lambda result: self._store.set_providers(result.value),
        )
        self._runner.submit(
            "list_input_devices",
            self._client.list_input_devices,
            self._on_input_devices_loaded,
        )

    def _on_input_devices_loaded(self, result: CommandResult) -> None:
        self._input_devices = list(result.value)
        self.input_devices_changed.emit(self.input_devices)
