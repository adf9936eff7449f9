"""
Pytest configuration for Qt-based tests.

Provides fixtures for proper Qt object cleanup between tests and an in-memory
engine that emits events synchronously, the way the real engine does from
inside its commands.
"""
import logging
import os
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Set
from unittest.mock import patch

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication

from src.whisperlink.core.engine import Engine, EngineError
from src.whisperlink.core.settings import Settings
from src.whisperlink.utils.logger import get_logger


class FakeEngine(Engine):
    """Engine double; commands listed in ``failing`` raise EngineError."""

    def __init__(self):
        self.listeners: Dict[str, List[Callable]] = defaultdict(list)
        self.failing: Set[str] = set()
        self.refuse_listen: Set[str] = set()
        self.calls: List[str] = []
        self.emit_events = True

        self.recording = False
        self.settings: dict = Settings(language="en").to_engine()
        self.saved_settings: List[dict] = []
        self.history: List[dict] = []
        self.providers: List[dict] = [
            {"id": "OpenAiWhisper", "name": "OpenAI Whisper", "available": True},
            {"id": "NativeStt", "name": "Native", "available": False},
        ]
        self.devices: List[dict] = [{"name": "Built-in Mic", "is_default": True}]
        self.asset_status: dict = {
            "library_available": True,
            "library_path": "/data/Whisper.dll",
            "models": [],
        }
        self.transcript = "hello world"

    def _command(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise EngineError(f"{name} failed")

    def emit(self, kind: str, payload=None) -> None:
        for handler in list(self.listeners[kind]):
            handler(payload)

    def listener_count(self, kind: Optional[str] = None) -> int:
        if kind is not None:
            return len(self.listeners[kind])
        return sum(len(handlers) for handlers in self.listeners.values())

    def start_recording(self) -> None:
        self._command("start_recording")
        self.recording = True
        if self.emit_events:
            self.emit("recording-started")

    def stop_recording_and_transcribe(self) -> str:
        self._command("stop_recording_and_transcribe")
        self.recording = False
        if self.emit_events:
            self.emit("recording-stopped")
            self.emit("transcribing")
            self.emit(
                "transcription-complete",
                {
                    "text": self.transcript,
                    "provider": "OpenAiWhisper",
                    "duration_ms": 1200,
                    "language": "en",
                },
            )
        return self.transcript

    def get_recording_state(self) -> bool:
        self._command("get_recording_state")
        return self.recording

    def get_settings(self) -> dict:
        self._command("get_settings")
        return dict(self.settings)

    def save_settings(self, settings: dict) -> None:
        self._command("save_settings")
        self.saved_settings.append(settings)
        self.settings = settings

    def get_history(self) -> List[dict]:
        self._command("get_history")
        return list(self.history)

    def clear_history(self) -> None:
        self._command("clear_history")
        self.history = []

    def get_providers(self) -> List[dict]:
        self._command("get_providers")
        return list(self.providers)

    def list_input_devices(self) -> List[dict]:
        self._command("list_input_devices")
        return list(self.devices)

    def get_asset_status(self) -> dict:
        self._command("get_asset_status")
        return dict(self.asset_status)

    def download_asset(self, kind: str, name: str) -> str:
        self._command("download_asset")
        return f"/data/{name}"

    def listen(self, kind: str, handler: Callable):
        if kind in self.refuse_listen:
            raise EngineError(f"cannot listen to {kind}")
        self.listeners[kind].append(handler)

        def unlisten():
            self.listeners[kind].remove(handler)

        return unlisten


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def whisperlink_caplog(caplog):
    """caplog that also sees records from the non-propagating package logger."""
    logger = get_logger()
    logger.propagate = True
    with caplog.at_level(logging.DEBUG, logger="whisperlink"):
        yield caplog
    logger.propagate = False


@pytest.fixture
def no_pynput():
    """Keep HotkeyListener from installing a real keyboard hook."""
    with patch(
        "src.whisperlink.core.input.hotkey._PynputHotkeyListenerImpl"
    ) as mock_impl:
        yield mock_impl


@pytest.fixture(autouse=True)
def cleanup_qt_objects(qtbot, request):
    """
    Auto-cleanup fixture that runs after each test to ensure Qt objects are
    properly destroyed before the next test starts.

    This prevents segmentation faults caused by dangling Qt object references.
    """
    yield

    # Process any pending events
    app = QApplication.instance()
    if app:
        app.processEvents()
