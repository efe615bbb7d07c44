"""Terminal fallback for devices that can't run any backend."""

from typing import Optional

from edgellm.device.classifier import ProviderName
from edgellm.models.downloader import ProgressCallback
from edgellm.providers.base import GenerateResult, Provider, UnsupportedDeviceError


class UnsupportedProvider(Provider):
    name = ProviderName.UNSUPPORTED

    async def generate(self, prompt: str, system_prompt: str = "") -> GenerateResult:
        raise UnsupportedDeviceError()

    async def download_model(self, on_progress: Optional[ProgressCallback] = None) -> bool:
        return False

    async def is_model_downloaded(self) -> bool:
        return False

    async def cleanup(self) -> None:
        pass
