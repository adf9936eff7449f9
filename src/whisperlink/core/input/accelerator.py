"""
Accelerator codec for global shortcuts.

Encodes captured key chords into canonical accelerator strings such as
``CommandOrControl+Shift+Space`` and decodes those strings back into the key
labels a given platform shows to the user.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent, QKeySequence

from ...config import DEFAULT_HOTKEY
from ...utils.platform import is_macos

SEPARATOR = "+"

COMMAND_OR_CONTROL = "CommandOrControl"
ALT = "Alt"
SHIFT = "Shift"
MODIFIER_ORDER: Tuple[str, ...] = (COMMAND_OR_CONTROL, ALT, SHIFT)

# Key names that only ever act as modifiers, never as the terminal key
MODIFIER_KEY_NAMES: Set[str] = {
    "control",
    "ctrl",
    "shift",
    "alt",
    "altgraph",
    "option",
    "meta",
    "command",
    "cmd",
    "commandorcontrol",
    "cmdorctrl",
    "super",
    "hyper",
    "os",
}

# Accelerator modifier tokens accepted when parsing, mapped to chord flags
_MODIFIER_TOKENS: Dict[str, str] = {
    "commandorcontrol": "ctrl",
    "cmdorctrl": "ctrl",
    "control": "ctrl",
    "ctrl": "ctrl",
    "command": "meta",
    "cmd": "meta",
    "meta": "meta",
    "super": "meta",
    "alt": "alt",
    "option": "alt",
    "shift": "shift",
}

ESCAPE_KEY = "Escape"
RESET_KEYS = ("Backspace", "Delete")


class DisplayPlatform(Enum):
    MAC = "mac"
    PC = "pc"


_MAC_LABELS: Dict[str, str] = {
    "CommandOrControl": "⌘",
    "CmdOrCtrl": "⌘",
    "Command": "⌘",
    "Cmd": "⌘",
    "Meta": "⌘",
    "Super": "⌘",
    "Control": "⌃",
    "Ctrl": "⌃",
    "Shift": "⇧",
    "Alt": "⌥",
    "Option": "⌥",
    "Space": "Space",
}

_PC_LABELS: Dict[str, str] = {
    "CommandOrControl": "Ctrl",
    "CmdOrCtrl": "Ctrl",
    "Control": "Ctrl",
    "Ctrl": "Ctrl",
    "Command": "Meta",
    "Cmd": "Meta",
    "Meta": "Meta",
    "Super": "Meta",
    "Shift": "Shift",
    "Alt": "Alt",
    "Option": "Alt",
    "Space": "Space",
}

_PLATFORM_LABELS = {
    DisplayPlatform.MAC: _MAC_LABELS,
    DisplayPlatform.PC: _PC_LABELS,
}


@dataclass(frozen=True)
class KeyChord:
    """A key press together with the modifiers held at that moment."""

    key: str
    ctrl: bool = False
    meta: bool = False
    alt: bool = False
    shift: bool = False

    @property
    def has_modifiers(self) -> bool:
        return self.ctrl or self.meta or self.alt or self.shift


def is_modifier_key(key: str) -> bool:
    return key.lower() in MODIFIER_KEY_NAMES


def _terminal_token(key: str) -> Optional[str]:
    if not key:
        return None
    if key == " " or key.lower() in ("space", "spacebar"):
        return "Space"
    if is_modifier_key(key):
        return None
    if key == SEPARATOR:
        return "Plus"
    if len(key) == 1:
        return key.upper()
    return key


def encode_chord(chord: KeyChord) -> Optional[str]:
    """
    Encode a chord into a canonical accelerator string.

    Returns None while only modifiers are held (no terminal key yet).
    """
    terminal = _terminal_token(chord.key)
    if terminal is None:
        return None

    parts: List[str] = []
    if chord.ctrl or chord.meta:
        parts.append(COMMAND_OR_CONTROL)
    if chord.alt:
        parts.append(ALT)
    if chord.shift:
        parts.append(SHIFT)
    parts.append(terminal)
    return SEPARATOR.join(parts)


def parse_accelerator(accelerator: str) -> KeyChord:
    """
    Parse an accelerator string back into a chord.

    Modifier tokens may appear in any order and more than once; exactly one
    non-modifier terminal key is required and it must come last.

    Raises:
        ValueError: If the accelerator is empty or malformed.
    """
    if not isinstance(accelerator, str) or not accelerator.strip():
        raise ValueError("accelerator must be a non-empty string")

    tokens = [token.strip() for token in accelerator.split(SEPARATOR)]
    if any(not token for token in tokens):
        raise ValueError(f"Empty key token in accelerator {accelerator!r}")

    *modifier_tokens, terminal = tokens
    flags = {"ctrl": False, "meta": False, "alt": False, "shift": False}
    for token in modifier_tokens:
        flag = _MODIFIER_TOKENS.get(token.lower())
        if flag is None:
            raise ValueError(
                f"Unexpected key {token!r} before the terminal key in {accelerator!r}"
            )
        flags[flag] = True

    if is_modifier_key(terminal):
        raise ValueError(f"Accelerator {accelerator!r} has no terminal key")

    return KeyChord(key=terminal, **flags)


def normalize_accelerator(accelerator: str) -> str:
    """Return the canonical form of ``accelerator``; raises ValueError if invalid."""
    encoded = encode_chord(parse_accelerator(accelerator))
    if encoded is None:
        raise ValueError(f"Accelerator {accelerator!r} has no terminal key")
    return encoded


def is_valid_accelerator(accelerator: str) -> bool:
    try:
        normalize_accelerator(accelerator)
    except ValueError:
        return False
    return True


def current_display_platform() -> DisplayPlatform:
    return DisplayPlatform.MAC if is_macos() else DisplayPlatform.PC


def decode_accelerator(
    accelerator: str, platform: Optional[DisplayPlatform] = None
) -> List[str]:
    """Split an accelerator into per-key display labels for ``platform``."""
    if not accelerator:
        return []

    labels = _PLATFORM_LABELS[platform or current_display_platform()]
    return [labels.get(token, token) for token in accelerator.split(SEPARATOR)]


def format_accelerator(
    accelerator: str,
    platform: Optional[DisplayPlatform] = None,
    separator: str = SEPARATOR,
) -> str:
    return separator.join(decode_accelerator(accelerator, platform))


# pynput names for the accelerator's named keys
_PYNPUT_KEY_NAMES: Dict[str, str] = {
    "Space": "space",
    "Enter": "enter",
    "Return": "enter",
    "Tab": "tab",
    "Escape": "esc",
    "Esc": "esc",
    "Backspace": "backspace",
    "Delete": "delete",
    "Insert": "insert",
    "Home": "home",
    "End": "end",
    "PageUp": "page_up",
    "PageDown": "page_down",
    "Up": "up",
    "Down": "down",
    "Left": "left",
    "Right": "right",
    "Plus": "+",
}


def to_pynput_keys(
    accelerator: str, platform: Optional[DisplayPlatform] = None
) -> Tuple[Set[str], str]:
    """
    Translate an accelerator into the listener's modifier types and trigger key.

    ``CommandOrControl`` resolves to ``cmd`` on macOS and ``ctrl`` elsewhere.
    """
    chord = parse_accelerator(accelerator)
    platform = platform or current_display_platform()

    modifiers: Set[str] = set()
    if chord.ctrl:
        modifiers.add("cmd" if platform is DisplayPlatform.MAC else "ctrl")
    if chord.meta:
        modifiers.add("cmd")
    if chord.alt:
        modifiers.add("alt")
    if chord.shift:
        modifiers.add("shift")

    terminal = _terminal_token(chord.key) or chord.key
    # F-keys and letters lower-case into pynput's names ("f5", "a")
    trigger = _PYNPUT_KEY_NAMES.get(terminal, terminal.lower())

    return modifiers, trigger


_QT_KEY_NAMES: Dict[int, str] = {
    int(Qt.Key.Key_Space): "Space",
    int(Qt.Key.Key_Escape): ESCAPE_KEY,
    int(Qt.Key.Key_Backspace): "Backspace",
    int(Qt.Key.Key_Delete): "Delete",
    int(Qt.Key.Key_Return): "Enter",
    int(Qt.Key.Key_Enter): "Enter",
    int(Qt.Key.Key_Tab): "Tab",
    int(Qt.Key.Key_Insert): "Insert",
    int(Qt.Key.Key_Home): "Home",
    int(Qt.Key.Key_End): "End",
    int(Qt.Key.Key_PageUp): "PageUp",
    int(Qt.Key.Key_PageDown): "PageDown",
    int(Qt.Key.Key_Up): "Up",
    int(Qt.Key.Key_Down): "Down",
    int(Qt.Key.Key_Left): "Left",
    int(Qt.Key.Key_Right): "Right",
    int(Qt.Key.Key_Plus): "Plus",
    int(Qt.Key.Key_Control): "Control",
    int(Qt.Key.Key_Shift): "Shift",
    int(Qt.Key.Key_Alt): "Alt",
    int(Qt.Key.Key_AltGr): "AltGraph",
    int(Qt.Key.Key_Meta): "Meta",
}


def _qt_key_name(key: int, text: str) -> str:
    if key in _QT_KEY_NAMES:
        return _QT_KEY_NAMES[key]

    f1 = int(Qt.Key.Key_F1)
    if f1 <= key <= int(Qt.Key.Key_F35):
        return f"F{key - f1 + 1}"

    # Printable ASCII; ``text`` turns into a control character while Ctrl is held
    if 0x20 < key < 0x7F:
        return chr(key)

    if len(text) == 1 and text.isprintable():
        return text

    return QKeySequence(key).toString()


def chord_from_qt(key: int, modifiers: Qt.KeyboardModifier, text: str = "") -> KeyChord:
    """Build a chord from a Qt key code and modifier flags."""
    key = int(key)
    return KeyChord(
        key=_qt_key_name(key, text),
        ctrl=bool(modifiers & Qt.KeyboardModifier.ControlModifier),
        meta=bool(modifiers & Qt.KeyboardModifier.MetaModifier),
        alt=bool(modifiers & Qt.KeyboardModifier.AltModifier),
        shift=bool(modifiers & Qt.KeyboardModifier.ShiftModifier),
    )


def chord_from_key_event(event: QKeyEvent) -> KeyChord:
    return chord_from_qt(event.key(), event.modifiers(), event.text())


class CaptureOutcome(Enum):
    IGNORED = "ignored"
    PENDING = "pending"
    CAPTURED = "captured"
    CANCELLED = "cancelled"
    RESET = "reset"


class HotkeyCapture:
    """
    Records a new hotkey from successive key presses.

    Escape cancels without touching the stored value, Backspace/Delete restore
    the default hotkey, modifier-only presses keep the capture pending.
    """

    def __init__(self, value: str = DEFAULT_HOTKEY):
        self._value = value
        self._capturing = False

    @property
    def value(self) -> str:
        return self._value

    @property
    def is_capturing(self) -> bool:
        return self._capturing

    def begin(self) -> None:
        self._capturing = True

    def cancel(self) -> None:
        self._capturing = False

    def handle(self, chord: KeyChord) -> CaptureOutcome:
        if not self._capturing:
            return CaptureOutcome.IGNORED

        if chord.key == ESCAPE_KEY:
            self._capturing = False
            return CaptureOutcome.CANCELLED

        if chord.key in RESET_KEYS:
            self._value = DEFAULT_HOTKEY
            self._capturing = False
            return CaptureOutcome.RESET

        accelerator = encode_chord(chord)
        if accelerator is None:
            return CaptureOutcome.PENDING

        self._value = accelerator
        self._capturing = False
        return CaptureOutcome.CAPTURED
