"""
Settings models shared with the transcription engine.

The engine owns persistence; these models validate what it sends back and
describe what is sent to it on save.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...config import DEFAULT_HOTKEY
from ...utils.logger import get_logger
from ..input.accelerator import normalize_accelerator

logger = get_logger(__name__)


class ProviderId(str, Enum):
    OPENAI_WHISPER = "OpenAiWhisper"
    GOOGLE_CLOUD = "GoogleCloud"
    LOCAL_WHISPER = "LocalWhisper"
    NATIVE_STT = "NativeStt"
    CONSTME_WHISPER = "ConstmeWhisper"


class InteractionMode(str, Enum):
    PUSH_TO_TALK = "PushToTalk"
    TOGGLE = "Toggle"


class ProviderInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: ProviderId
    name: str
    available: bool = True


class AudioDevice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    is_default: bool = False


DEFAULT_PROVIDERS: List[ProviderInfo] = [
    ProviderInfo(id=ProviderId.OPENAI_WHISPER, name="OpenAI Whisper", available=True),
    ProviderInfo(
        id=ProviderId.GOOGLE_CLOUD, name="Google Cloud Speech-to-Text", available=True
    ),
    ProviderInfo(
        id=ProviderId.LOCAL_WHISPER, name="Local Whisper (whisper.cpp)", available=False
    ),
    ProviderInfo(id=ProviderId.NATIVE_STT, name="Native OS Speech-to-Text", available=True),
]


class ProviderConfig(BaseModel):
    """Per-provider options. Missing, null and empty-string values all mean unset."""

    model_config = ConfigDict(extra="ignore", validate_assignment=False)

    api_key: Optional[str] = None
    model: Optional[str] = None
    language: Optional[str] = None
    endpoint: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_is_unset(cls, v):
        if isinstance(v, str) and v == "":
            return None
        return v


class Settings(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=False)

    active_provider: ProviderId = DEFAULT_PROVIDERS[0].id
    interaction_mode: InteractionMode = InteractionMode.TOGGLE
    hotkey: str = DEFAULT_HOTKEY
    language: str = "auto"
    provider_configs: Dict[str, ProviderConfig] = Field(default_factory=dict)
    local_whisper_model_path: Optional[str] = None
    constme_whisper_dll_path: Optional[str] = None
    constme_whisper_model_path: Optional[str] = None
    constme_whisper_model_name: Optional[str] = None
    auto_paste: bool = True
    show_overlay: bool = True
    input_device: Optional[str] = None

    @field_validator("hotkey")
    @classmethod
    def hotkey_is_accelerator(cls, v):
        return normalize_accelerator(v)

    @field_validator("language")
    @classmethod
    def language_not_empty(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("language must be a non-empty string")
        return v

    @classmethod
    def from_engine(cls, data: Any) -> "Settings":
        """
        Build settings from an engine payload.

        Fields that fail validation fall back to their defaults individually so a
        single bad value does not discard the rest of the user's configuration.
        """
        if isinstance(data, Settings):
            return data.model_copy(deep=True)
        if not isinstance(data, dict):
            raise TypeError(f"Expected a settings mapping, got {type(data).__name__}")

        valid_keys = cls.model_fields.keys()
        filtered_data = {k: v for k, v in data.items() if k in valid_keys}
        return cls._load_with_fallbacks(filtered_data)

    @classmethod
    def _load_with_fallbacks(cls, data: dict) -> "Settings":
        """Load settings with field-level fallback to defaults on validation errors."""
        defaults = cls()
        result_data = {}

        for field_name in cls.model_fields:
            if field_name not in data:
                continue
            try:
                cls.model_validate({field_name: data[field_name]})
                result_data[field_name] = data[field_name]
            except Exception:
                default_val = getattr(defaults, field_name)
                logger.warning(
                    f"Invalid {field_name} {data[field_name]!r}, resetting to {default_val!r}"
                )

        return cls.model_validate(result_data)

    def to_engine(self) -> dict:
        return self.model_dump(mode="json")

    def get_provider_config(self, provider_id: str) -> ProviderConfig:
        key = provider_id.value if isinstance(provider_id, ProviderId) else provider_id
        if key in self.provider_configs:
            return self.provider_configs[key].model_copy()
        return ProviderConfig()


def default_settings() -> Settings:
    """Built-in settings used when the engine cannot be reached."""
    return Settings()


def default_providers() -> List[ProviderInfo]:
    return [p.model_copy() for p in DEFAULT_PROVIDERS]
