from .accelerator import (
    CaptureOutcome,
    DisplayPlatform,
    HotkeyCapture,
    KeyChord,
    chord_from_key_event,
    chord_from_qt,
    decode_accelerator,
    encode_chord,
    format_accelerator,
    is_valid_accelerator,
    normalize_accelerator,
    parse_accelerator,
    to_pynput_keys,
)
from .hotkey import HotkeyListener

__all__ = [
    "CaptureOutcome",
    "DisplayPlatform",
    "HotkeyCapture",
    "KeyChord",
    "chord_from_key_event",
    "chord_from_qt",
    "decode_accelerator",
    "encode_chord",
    "format_accelerator",
    "is_valid_accelerator",
    "normalize_accelerator",
    "parse_accelerator",
    "to_pynput_keys",
    "HotkeyListener",
]
