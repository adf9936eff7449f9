from .base import Engine, EngineError, load_engine
from .events import (
    DownloadProgress,
    EngineErrorPayload,
    EventKind,
    TranscriptionResult,
    parse_payload,
)
from .client import CommandResult, EngineClient
from .subscriptions import EventSubscriptionManager, SubscriptionSet
from .worker import (
    CommandRunner,
    CommandThread,
    ImmediateCommandRunner,
    ThreadedCommandRunner,
)

__all__ = [
    "Engine",
    "EngineError",
    "load_engine",
    "DownloadProgress",
    "EngineErrorPayload",
    "EventKind",
    "TranscriptionResult",
    "parse_payload",
    "CommandResult",
    "EngineClient",
    "EventSubscriptionManager",
    "SubscriptionSet",
    "CommandRunner",
    "CommandThread",
    "ImmediateCommandRunner",
    "ThreadedCommandRunner",
]
