"""Apple Foundation Models provider (iOS 26+ on eligible hardware)."""

import time
from typing import Optional

from edgellm.device.classifier import ProviderName
from edgellm.models.downloader import ProgressCallback
from edgellm.providers.base import GenerateResult, Provider
from edgellm.runtime.foundation import FoundationModelsBridge, FoundationSession
from edgellm.utils.logging import logger


class AppleFoundationProvider(Provider):
    """
    Runs prompts through the system model.
    Nothing to download: the model ships with the OS.
    """

    name = ProviderName.APPLE_FOUNDATION

    def __init__(self, bridge: FoundationModelsBridge):
        self.bridge = bridge
        self._session: Optional[FoundationSession] = None
        self._instructions: Optional[str] = None

    async def _ensure_session(self, system_prompt: str) -> FoundationSession:
        if self._session is None:
            self._session = self.bridge.create_session()
            self._instructions = None
            logger.info("Apple Foundation session created")

        # Reconfiguring resets the session, so only do it when instructions change
        if system_prompt != self._instructions:
            await self._session.configure(instructions=system_prompt)
            self._instructions = system_prompt

        return self._session

    async def generate(self, prompt: str, system_prompt: str = "") -> GenerateResult:
        start = time.perf_counter()
        session = await self._ensure_session(system_prompt)
        text = await session.generate_text(prompt)
        return GenerateResult(
            text=text,
            provider=self.name,
            latency_ms=(time.perf_counter() - start) * 1000,
        )

    async def download_model(self, on_progress: Optional[ProgressCallback] = None) -> bool:
        return True

    async def cleanup(self) -> None:
        if self._session is not None:
            try:
                self._session.dispose()
            except Exception as e:
                logger.warning(f"Error disposing Apple Foundation session: {e}")
            self._session = None
            self._instructions = None
