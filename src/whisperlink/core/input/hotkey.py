"""
Hotkey listener for global keyboard shortcuts.

Uses pynput; the shortcut is configured as an accelerator string.
"""

from typing import Optional, Set

from PySide6.QtCore import QObject, Signal

from ...config import DEFAULT_HOTKEY
from ...utils.logger import get_logger
from ...utils.platform import check_accessibility_permissions
from .accelerator import to_pynput_keys

logger = get_logger(__name__)


class HotkeyListener(QObject):
    """
    Listens for hotkey combinations.

    Signals:
        hotkey_pressed: Emitted when the hotkey is pressed
        hotkey_released: Emitted when the hotkey is released
    """

    hotkey_pressed = Signal()
    hotkey_released = Signal()

    def __init__(self, accelerator: str = DEFAULT_HOTKEY, parent: Optional[QObject] = None):
        super().__init__(parent)

        self._is_hotkey_active = False
        self._setup_hotkey(accelerator)

        self._impl = _PynputHotkeyListenerImpl(self)

    @property
    def accelerator(self) -> str:
        return self._accelerator

    def update_accelerator(self, accelerator: str) -> None:
        if accelerator == self._accelerator:
            return
        self._setup_hotkey(accelerator)
        self._impl.update_config(self._trigger_key, self._required_modifier_types)
        logger.info(f"Hotkey changed to {self._accelerator}")

    def _setup_hotkey(self, accelerator: str) -> None:
        try:
            modifiers, trigger = to_pynput_keys(accelerator)
        except ValueError as e:
            logger.warning(f"Invalid hotkey {accelerator!r} ({e}), using {DEFAULT_HOTKEY}")
            accelerator = DEFAULT_HOTKEY
            modifiers, trigger = to_pynput_keys(accelerator)

        self._accelerator = accelerator
        self._required_modifier_types: Set[str] = modifiers
        self._trigger_key = trigger

    def start(self) -> None:
        self._impl.start()

    def stop(self) -> None:
        self._impl.stop()
        self._is_hotkey_active = False

    def _on_hotkey_pressed(self) -> None:
        if not self._is_hotkey_active:
            self._is_hotkey_active = True
            self.hotkey_pressed.emit()

    def _on_hotkey_released(self) -> None:
        if self._is_hotkey_active:
            self._is_hotkey_active = False
            self.hotkey_released.emit()


class _PynputHotkeyListenerImpl:
    """
    Pynput-based hotkey listener.
    """

    def __init__(self, listener: HotkeyListener):
        from pynput import keyboard

        self._listener = listener
        self._keyboard_listener: Optional[keyboard.Listener] = None
        self._pressed_keys: set = set()

        self._trigger_key = keyboard.Key.space
        self._required_modifier_types = listener._required_modifier_types
        self._update_trigger_key(listener._trigger_key)

    def _update_trigger_key(self, key_name: str) -> None:
        from pynput import keyboard

        try:
            self._trigger_key = getattr(keyboard.Key, key_name)
        except AttributeError:
            self._trigger_key = keyboard.KeyCode.from_char(key_name)

    def update_config(self, trigger_key: str, modifiers: Set[str]) -> None:
        self._required_modifier_types = modifiers
        self._update_trigger_key(trigger_key)

    def _normalize(self, key):
        # Shift turns "a" into "A" before it reaches us
        char = getattr(key, "char", None)
        if char:
            from pynput import keyboard

            return keyboard.KeyCode.from_char(char.lower())
        return key

    def _check_hotkey(self) -> bool:
        from pynput import keyboard

        if self._trigger_key not in self._pressed_keys:
            return False

        for mod_type in self._required_modifier_types:
            is_pressed = False
            if mod_type == "ctrl":
                is_pressed = (
                    keyboard.Key.ctrl_l in self._pressed_keys
                    or keyboard.Key.ctrl_r in self._pressed_keys
                    or keyboard.Key.ctrl in self._pressed_keys
                )
            elif mod_type == "alt":
                is_pressed = (
                    keyboard.Key.alt_l in self._pressed_keys
                    or keyboard.Key.alt_r in self._pressed_keys
                    or keyboard.Key.alt in self._pressed_keys
                )
            elif mod_type == "shift":
                is_pressed = (
                    keyboard.Key.shift_l in self._pressed_keys
                    or keyboard.Key.shift_r in self._pressed_keys
                    or keyboard.Key.shift in self._pressed_keys
                )
            elif mod_type == "cmd":
                is_pressed = (
                    keyboard.Key.cmd_l in self._pressed_keys
                    or keyboard.Key.cmd_r in self._pressed_keys
                    or keyboard.Key.cmd in self._pressed_keys
                )

            if not is_pressed:
                return False

        return True

    def _on_press(self, key) -> None:
        self._pressed_keys.add(self._normalize(key))

        if self._check_hotkey():
            self._listener._on_hotkey_pressed()

    def _on_release(self, key) -> None:
        self._pressed_keys.discard(self._normalize(key))

        if not self._check_hotkey():
            self._listener._on_hotkey_released()

    def start(self) -> None:
        from pynput import keyboard

        if self._keyboard_listener is not None:
            return

        if not check_accessibility_permissions():
            logger.warning(
                "Accessibility permissions not granted, the global hotkey may not work"
            )

        self._keyboard_listener = keyboard.Listener(
            on_press=self._on_press, on_release=self._on_release
        )
        self._keyboard_listener.start()

    def stop(self) -> None:
        if self._keyboard_listener:
            self._keyboard_listener.stop()
            self._keyboard_listener = None
        self._pressed_keys.clear()
