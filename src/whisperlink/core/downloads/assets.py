"""Downloadable engine assets and progress line formatting."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

ASSET_KIND_LIBRARY = "library"
ASSET_KIND_MODEL = "model"

UNKNOWN_TOTAL = "?"


class ModelAssetStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    filename: str
    size_description: str = ""
    available: bool = False
    path: Optional[str] = None


class AssetStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    library_available: bool = False
    library_path: Optional[str] = None
    models: List[ModelAssetStatus] = Field(default_factory=list)

    def get_model(self, filename: str) -> Optional[ModelAssetStatus]:
        for model in self.models:
            if model.filename == filename:
                return model
        return None


def format_bytes(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    size = num_bytes / 1024
    for unit in ("KB", "MB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def format_progress_line(downloaded_bytes: int, total_bytes: Optional[int]) -> str:
    """Render ``downloaded / total``; the total is ``?`` for streams without a length."""
    total = format_bytes(total_bytes) if total_bytes is not None else UNKNOWN_TOTAL
    return f"{format_bytes(downloaded_bytes)} / {total}"
