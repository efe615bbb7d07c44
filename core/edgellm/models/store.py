"""
On-disk model storage.
Answers "is this model present and intact?" for status checks and downloads.
"""

from pathlib import Path

from edgellm import config
from edgellm.models.catalog import ModelDefinition
from edgellm.utils.logging import logger


class ModelStore:
    """Locates, verifies and deletes downloaded model files."""

    def __init__(self, models_dir: Path | None = None):
        self.models_dir = models_dir or config.MODELS_DIR

    def path_for(self, model: ModelDefinition) -> Path:
        return self.models_dir / model.file_name

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def size_on_disk(self, model: ModelDefinition) -> int:
        """Size of the local file in bytes, 0 if missing."""
        path = self.path_for(model)
        return path.stat().st_size if self.exists(path) else 0

    def is_intact(self, model: ModelDefinition, size: int) -> bool:
        """Check a byte count against the catalog estimate."""
        if model.size_bytes <= 0:
            return size > 0
        ratio = size / model.size_bytes
        return config.MODEL_SIZE_MIN_RATIO <= ratio <= config.MODEL_SIZE_MAX_RATIO

    def is_downloaded(self, model: ModelDefinition) -> bool:
        """
        Check that the model file exists and has a plausible size.
        A truncated file from an interrupted download counts as missing.
        """
        path = self.path_for(model)
        if not self.exists(path):
            return False
        try:
            return self.is_intact(model, path.stat().st_size)
        except OSError as e:
            logger.warning(f"Could not stat {path}: {e}")
            return False

    def delete(self, model: ModelDefinition) -> bool:
        """
        Delete a downloaded model.

        Returns:
            True if deleted, False if not found
        """
        path = self.path_for(model)
        if path.exists():
            path.unlink()
            logger.info(f"Deleted {path}")
            return True
        return False

