"""Models module - model catalog, storage and downloading."""

from edgellm.models.catalog import MODEL_CATALOG, ModelDefinition, get_model_definition
from edgellm.models.downloader import (
    DownloadCoordinator,
    DownloadProgress,
    DownloadResult,
)
from edgellm.models.store import ModelStore

__all__ = [
    "MODEL_CATALOG",
    "ModelDefinition",
    "get_model_definition",
    "DownloadCoordinator",
    "DownloadProgress",
    "DownloadResult",
    "ModelStore",
]
