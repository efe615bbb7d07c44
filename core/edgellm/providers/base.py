"""Provider interface shared by every backend."""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel

from edgellm.device.classifier import ProviderName
from edgellm.models.downloader import ProgressCallback

UNSUPPORTED_MESSAGE = "LLM not available on this device"


class UnsupportedDeviceError(RuntimeError):
    """Raised when generation is requested on a device that can't run a model."""

    def __init__(self, message: str = UNSUPPORTED_MESSAGE):
        super().__init__(message)


class ModelNotDownloadedError(FileNotFoundError):
    """Raised when a llama tier is asked to generate before its model is on disk."""


class GenerateResult(BaseModel):
    """Output of a single generation."""

    text: str
    provider: ProviderName
    latency_ms: float


class Provider(ABC):
    """A text-generation backend selected for this device."""

    name: ProviderName

    @abstractmethod
    async def generate(self, prompt: str, system_prompt: str = "") -> GenerateResult:
        """Generate a completion for the prompt."""

    @abstractmethod
    async def download_model(self, on_progress: Optional[ProgressCallback] = None) -> bool:
        """Make sure model weights are present. True when ready to load."""

    @abstractmethod
    async def cleanup(self) -> None:
        """Release loaded model/session resources. Idempotent."""

    async def is_model_downloaded(self) -> bool:
        return True

    async def get_model_size(self) -> int:
        return 0

    def cancel_download(self) -> None:
        """Cancel an in-flight download. No-op by default."""
