from .settings import (
    DEFAULT_PROVIDERS,
    AudioDevice,
    InteractionMode,
    ProviderConfig,
    ProviderId,
    ProviderInfo,
    Settings,
    default_providers,
    default_settings,
)

__all__ = [
    "DEFAULT_PROVIDERS",
    "AudioDevice",
    "InteractionMode",
    "ProviderConfig",
    "ProviderId",
    "ProviderInfo",
    "Settings",
    "default_providers",
    "default_settings",
]
