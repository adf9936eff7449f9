"""Tests for settings models and draft reconciliation."""

import pytest

from src.whisperlink.core.engine import EngineClient, ImmediateCommandRunner
from src.whisperlink.core.settings import (
    InteractionMode,
    ProviderConfig,
    ProviderId,
    Settings,
    default_providers,
)
from src.whisperlink.core.settings.reconciler import SettingsReconciler
from src.whisperlink.core.state import AppStateStore


class DeferredRunner(ImmediateCommandRunner):
    """Holds submitted commands until the test completes them."""

    def __init__(self):
        self.pending = []

    def submit(self, name, call, on_done):
        self.pending.append((call, on_done))


class TestProviderConfig:
    def test_default_values(self):
        config = ProviderConfig()
        assert config.api_key is None
        assert config.model is None

    def test_empty_string_is_unset(self):
        config = ProviderConfig(api_key="", model="whisper-1", endpoint="")
        assert config.api_key is None
        assert config.endpoint is None
        assert config.model == "whisper-1"

    def test_ignores_unknown_fields(self):
        config = ProviderConfig.model_validate({"api_key": "k", "legacy": True})
        assert config.api_key == "k"


class TestSettings:
    def test_default_values(self):
        settings = Settings()
        assert settings.active_provider is ProviderId.OPENAI_WHISPER
        assert settings.interaction_mode is InteractionMode.TOGGLE
        assert settings.hotkey == "CommandOrControl+Shift+Space"
        assert settings.auto_paste is True
        assert settings.input_device is None

    def test_hotkey_is_normalized(self):
        assert Settings(hotkey="shift+ctrl+k").hotkey == "CommandOrControl+Shift+K"

    def test_invalid_hotkey_rejected(self):
        with pytest.raises(ValueError):
            Settings(hotkey="Ctrl+Shift")

    def test_empty_language_rejected(self):
        with pytest.raises(ValueError):
            Settings(language="  ")

    def test_engine_round_trip(self):
        original = Settings(
            active_provider=ProviderId.GOOGLE_CLOUD,
            interaction_mode=InteractionMode.PUSH_TO_TALK,
            provider_configs={"GoogleCloud": ProviderConfig(api_key="secret")},
            input_device="USB Mic",
        )
        data = original.to_engine()

        assert data["active_provider"] == "GoogleCloud"
        assert data["interaction_mode"] == "PushToTalk"
        assert Settings.from_engine(data) == original

    def test_from_engine_falls_back_per_field(self, whisperlink_caplog):
        settings = Settings.from_engine(
            {
                "active_provider": "NoSuchProvider",
                "hotkey": "Alt+R",
                "language": "",
                "auto_paste": False,
                "unknown_key": "ignored",
            }
        )

        assert settings.active_provider is ProviderId.OPENAI_WHISPER
        assert settings.language == "auto"
        assert settings.hotkey == "Alt+R"
        assert settings.auto_paste is False
        assert "Invalid active_provider" in whisperlink_caplog.text
        assert "Invalid language" in whisperlink_caplog.text

    def test_from_engine_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            Settings.from_engine(["not", "a", "dict"])

    def test_get_provider_config(self):
        settings = Settings(provider_configs={"GoogleCloud": {"api_key": "k"}})
        assert settings.get_provider_config(ProviderId.GOOGLE_CLOUD).api_key == "k"
        assert settings.get_provider_config("OpenAiWhisper") == ProviderConfig()

    def test_default_providers_are_copies(self):
        providers = default_providers()
        providers[0].name = "changed"
        assert default_providers()[0].name != "changed"


@pytest.fixture
def store(qtbot):
    store = AppStateStore()
    store.set_settings(Settings(language="en"))
    return store


@pytest.fixture
def reconciler(engine, store):
    return SettingsReconciler(store, EngineClient(engine), ImmediateCommandRunner())


class TestSettingsReconciler:
    def test_draft_starts_as_canonical(self, reconciler, store):
        assert reconciler.draft == store.settings
        assert reconciler.draft is not store.settings
        assert not reconciler.is_dirty

    def test_update_field(self, reconciler, store):
        assert reconciler.update_field("auto_paste", False)

        assert reconciler.draft.auto_paste is False
        assert reconciler.draft.language == "en"
        assert store.settings.auto_paste is True
        assert reconciler.is_dirty

    def test_update_field_unknown_key(self, reconciler):
        assert not reconciler.update_field("volume", 11)

    def test_update_field_invalid_value(self, reconciler):
        assert not reconciler.update_field("hotkey", "Shift")
        assert reconciler.draft.hotkey == "CommandOrControl+Shift+Space"

    def test_update_field_rejects_provider_configs(self, reconciler):
        assert not reconciler.update_field("provider_configs", {})

    def test_update_provider_config(self, reconciler, qtbot):
        with qtbot.waitSignal(reconciler.draft_changed):
            assert reconciler.update_provider_config("GoogleCloud", "api_key", "abc")

        assert reconciler.draft.get_provider_config("GoogleCloud").api_key == "abc"

    def test_update_provider_config_empty_is_unset(self, reconciler):
        reconciler.update_provider_config(ProviderId.OPENAI_WHISPER, "model", "whisper-1")
        reconciler.update_provider_config(ProviderId.OPENAI_WHISPER, "model", "")

        assert reconciler.draft.get_provider_config("OpenAiWhisper").model is None

    def test_update_provider_config_unknown_field(self, reconciler):
        assert not reconciler.update_provider_config("GoogleCloud", "region", "eu")

    def test_discard_changes(self, reconciler, store):
        reconciler.update_field("language", "fr")
        reconciler.discard_changes()

        assert reconciler.draft == store.settings
        assert not reconciler.is_dirty

    def test_save_success(self, reconciler, store, engine, qtbot):
        reconciler.update_field("language", "de")

        with qtbot.waitSignal(reconciler.saved_changed) as blocker:
            assert reconciler.save()

        assert blocker.args == [True]
        assert reconciler.is_saved
        assert not reconciler.is_saving
        assert store.settings.language == "de"
        assert engine.saved_settings[-1]["language"] == "de"
        assert not reconciler.is_dirty

    def test_saved_flag_clears_after_delay(self, reconciler, qtbot):
        reconciler.save()
        assert reconciler.is_saved

        with qtbot.waitSignal(reconciler.saved_changed, timeout=3000) as blocker:
            pass

        assert blocker.args == [False]
        assert not reconciler.is_saved

    def test_save_failure_keeps_canonical_and_draft(
        self, reconciler, store, engine, qtbot, whisperlink_caplog
    ):
        engine.failing.add("save_settings")
        reconciler.update_field("language", "de")

        with qtbot.waitSignal(reconciler.save_failed) as blocker:
            reconciler.save()

        assert blocker.args == ["save_settings failed"]
        assert store.settings.language == "en"
        assert reconciler.draft.language == "de"
        assert not reconciler.is_saved
        assert not reconciler.is_saving
        assert "Failed to save settings" in whisperlink_caplog.text

    def test_save_headless_fails(self, store, qtbot):
        reconciler = SettingsReconciler(store, EngineClient(), ImmediateCommandRunner())

        with qtbot.waitSignal(reconciler.save_failed):
            reconciler.save()

        assert not reconciler.is_saved

    def test_second_save_while_saving_is_ignored(self, store, engine):
        runner = DeferredRunner()
        reconciler = SettingsReconciler(store, EngineClient(engine), runner)

        assert reconciler.save()
        assert reconciler.is_saving
        assert not reconciler.save()
        assert len(runner.pending) == 1

        call, on_done = runner.pending.pop()
        on_done(call())
        assert not reconciler.is_saving

    def test_snapshot_is_what_gets_saved(self, store, engine):
        runner = DeferredRunner()
        reconciler = SettingsReconciler(store, EngineClient(engine), runner)
        reconciler.update_field("language", "de")
        reconciler.save()
        reconciler.update_field("language", "it")

        call, on_done = runner.pending.pop()
        on_done(call())

        assert engine.saved_settings[-1]["language"] == "de"
        assert store.settings.language == "de"

    def test_canonical_change_resets_draft(self, reconciler, store):
        reconciler.update_field("language", "de")
        store.set_settings(Settings(language="pt"))

        assert reconciler.draft.language == "pt"

    def test_refresh_options(self, reconciler, store, qtbot):
        with qtbot.waitSignal(reconciler.input_devices_changed) as blocker:
            reconciler.refresh_options()

        assert [d.name for d in blocker.args[0]] == ["Built-in Mic"]
        assert [p.id for p in store.providers] == [
            ProviderId.OPENAI_WHISPER,
            ProviderId.NATIVE_STT,
        ]
