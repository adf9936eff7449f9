"""
Centralized application configuration.

Edit the variables below to configure development settings.
"""

import logging

# =============================================================================
# DEVELOPMENT SETTINGS - Edit these for local development
# =============================================================================
LOG_LEVEL = "DEBUG"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_TO_CONSOLE = True  # Set to True to output logs to terminal
# =============================================================================

# =============================================================================
# HISTORY SETTINGS
# =============================================================================
MAX_HISTORY_ENTRIES = 100  # Number of transcription history records to keep
# =============================================================================

# =============================================================================
# SETTINGS PANEL
# =============================================================================
SAVED_FLAG_DURATION_MS = 2000  # How long the "saved" flag stays raised
DEFAULT_HOTKEY = "CommandOrControl+Shift+Space"
# =============================================================================

# =============================================================================
# ENGINE ATTACHMENT
# =============================================================================
# "package.module:factory" reference; unset means headless mode
ENGINE_ENV_VAR = "WHISPERLINK_ENGINE"
# How long shutdown waits for unanswered engine commands before giving up
SHUTDOWN_COMMAND_WAIT_MS = 3000
# =============================================================================


def get_log_level() -> int:
    """Get the logging level as an integer."""
    return getattr(logging, LOG_LEVEL.upper(), logging.INFO)
