from .assets import (
    ASSET_KIND_LIBRARY,
    ASSET_KIND_MODEL,
    AssetStatus,
    ModelAssetStatus,
    format_bytes,
    format_progress_line,
)
from .tracker import DownloadProgressTracker

__all__ = [
    "ASSET_KIND_LIBRARY",
    "ASSET_KIND_MODEL",
    "AssetStatus",
    "ModelAssetStatus",
    "format_bytes",
    "format_progress_line",
    "DownloadProgressTracker",
]
