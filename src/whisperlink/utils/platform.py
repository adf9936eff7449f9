"""Platform-specific utilities for cross-platform compatibility."""

import platform
import subprocess

from .logger import get_logger

logger = get_logger(__name__)


def get_platform() -> str:
    system = platform.system()
    if system == "Darwin":
        return "macos"
    return system.lower()


def is_macos() -> bool:
    return get_platform() == "macos"


def check_accessibility_permissions() -> bool:
    """Global keyboard hooks on macOS need the Accessibility permission."""
    if not is_macos():
        return True

    try:
        # Attempt a minimal System Events interaction to test accessibility
        result = subprocess.run(
            ["osascript", "-e", 'tell application "System Events" to keystroke ""'],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except subprocess.TimeoutExpired:
        logger.warning("Accessibility permission check timed out")
        return False
    except Exception as e:
        logger.warning(f"Failed to check accessibility permissions: {e}")
        return False

