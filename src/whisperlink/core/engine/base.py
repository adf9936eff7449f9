"""
Engine interface.

The engine performs audio capture and speech-to-text inference in another
process or runtime. This application only talks to it through the commands
and events declared here.
"""

import importlib
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from ...utils.logger import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[Any], None]
Unlisten = Callable[[], None]


class EngineError(Exception):
    """Raised by an engine when a command is rejected."""


class Engine(ABC):
    """
    Command + event boundary of the transcription engine.

    Commands may block and raise EngineError. Event handlers registered with
    ``listen`` may be invoked from any thread.
    """

    @abstractmethod
    def start_recording(self) -> None: ...

    @abstractmethod
    def stop_recording_and_transcribe(self) -> str: ...

    @abstractmethod
    def get_recording_state(self) -> bool: ...

    @abstractmethod
    def get_settings(self) -> dict: ...

    @abstractmethod
    def save_settings(self, settings: dict) -> None: ...

    @abstractmethod
    def get_history(self) -> List[dict]: ...

    @abstractmethod
    def clear_history(self) -> None: ...

    @abstractmethod
    def get_providers(self) -> List[dict]: ...

    @abstractmethod
    def list_input_devices(self) -> List[dict]: ...

    @abstractmethod
    def get_asset_status(self) -> dict: ...

    @abstractmethod
    def download_asset(self, kind: str, name: str) -> str: ...

    @abstractmethod
    def listen(self, kind: str, handler: EventHandler) -> Unlisten:
        """Register ``handler`` for events named ``kind``; returns the unlisten callable."""


def load_engine(reference: Optional[str]) -> Optional[Engine]:
    """
    Instantiate an engine from a ``"package.module:factory"`` reference.

    Returns None (headless mode) when no reference is given or it cannot be loaded.
    """
    if not reference:
        return None

    module_name, _, factory_name = reference.partition(":")
    if not module_name or not factory_name:
        logger.error(f"Invalid engine reference {reference!r}, expected 'module:factory'")
        return None

    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, factory_name)
        engine = factory()
    except Exception as e:
        logger.error(f"Could not load engine {reference!r}: {e}", exc_info=True)
        return None

    if not isinstance(engine, Engine):
        logger.error(
            f"Engine factory {reference!r} returned {type(engine).__name__}, not an Engine"
        )
        return None

    logger.info(f"Attached engine {type(engine).__name__} from {reference}")
    return engine
