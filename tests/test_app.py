"""Integration tests for the wired application."""

import pytest

from src.whisperlink.app import WhisperLinkApp
from src.whisperlink.core.engine import ImmediateCommandRunner
from src.whisperlink.core.input import HotkeyListener
from src.whisperlink.core.settings import InteractionMode, Settings
from src.whisperlink.core.state import LifecycleState


@pytest.fixture
def hotkey_listener(qtbot, no_pynput):
    return HotkeyListener()


@pytest.fixture
def app(engine, hotkey_listener):
    app = WhisperLinkApp(
        engine=engine, runner=ImmediateCommandRunner(), hotkey_listener=hotkey_listener
    )
    yield app
    app.shutdown()


class TestWhisperLinkApp:
    def test_run_subscribes_and_loads(self, app, engine, no_pynput):
        app.run()

        assert engine.listener_count() == 6
        assert app.store.settings.language == "en"
        assert len(app.store.providers) == 2
        no_pynput.return_value.start.assert_called_once()

    def test_toggle_round_trip(self, app, engine, hotkey_listener):
        app.run()

        hotkey_listener._on_hotkey_pressed()
        assert app.store.lifecycle is LifecycleState.RECORDING
        hotkey_listener._on_hotkey_released()

        hotkey_listener._on_hotkey_pressed()

        assert app.store.lifecycle is LifecycleState.IDLE
        assert app.store.current_transcription == "hello world"
        assert [e.text for e in app.store.history] == ["hello world"]

    def test_push_to_talk(self, app, engine, hotkey_listener):
        engine.settings = Settings(
            language="en", interaction_mode=InteractionMode.PUSH_TO_TALK
        ).to_engine()
        app.run()

        hotkey_listener._on_hotkey_pressed()
        assert app.store.is_recording
        hotkey_listener._on_hotkey_released()

        assert app.store.lifecycle is LifecycleState.IDLE
        assert engine.calls[-1] == "stop_recording_and_transcribe"

    def test_engine_error_event(self, app, engine):
        app.run()
        engine.emit("recording-started")

        engine.emit("error", "device lost")

        assert app.store.lifecycle is LifecycleState.IDLE
        assert app.store.error == "device lost"

    def test_download_progress_event(self, app, engine):
        app.run()
        engine.emit("download-progress", {"item": "lib", "downloaded_bytes": 1024})

        assert app.downloads.line_for("lib") == "1.0 KB / ?"

        engine.emit("download-progress", {"item": "lib", "done": True})

        assert not app.downloads.is_downloading("lib")
        assert app.store.asset_status.library_available

    def test_saved_hotkey_reaches_listener(self, app, hotkey_listener):
        app.run()

        app.reconciler.update_field("hotkey", "Alt+K")
        app.reconciler.save()

        assert hotkey_listener.accelerator == "Alt+K"

    def test_shutdown_releases_everything(self, app, engine, no_pynput):
        app.run()

        app.shutdown()
        app.shutdown()

        assert engine.listener_count() == 0
        assert app.subscriptions.released
        no_pynput.return_value.stop.assert_called_once()

    def test_no_events_after_shutdown(self, app, engine):
        app.run()
        handler = engine.listeners["recording-started"][0]
        app.shutdown()

        handler(None)

        assert app.store.lifecycle is LifecycleState.IDLE


class TestHeadless:
    def test_runs_without_engine(self, hotkey_listener):
        app = WhisperLinkApp(hotkey_listener=hotkey_listener)
        app.run()

        assert not app.client.is_attached
        assert len(app.subscriptions) == 0
        assert app.store.settings == Settings()
        assert len(app.store.providers) == 4

        app.shutdown()

    def test_toggle_does_not_change_state(self, hotkey_listener):
        app = WhisperLinkApp(hotkey_listener=hotkey_listener)
        app.run()

        hotkey_listener._on_hotkey_pressed()

        assert app.store.lifecycle is LifecycleState.IDLE
        app.shutdown()

    def test_clear_history_headless(self, hotkey_listener, qtbot):
        app = WhisperLinkApp(hotkey_listener=hotkey_listener)
        app.run()

        with qtbot.waitSignal(app.store.history_changed):
            app.clear_history()

        assert app.store.history == []
        app.shutdown()
