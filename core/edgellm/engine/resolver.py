"""
Provider resolver.
Classifies the device once, caches the chosen provider and exposes the
public LLM API. Resolution order:
1. Apple Foundation Models (iOS 26+ on eligible hardware)
2. llama.cpp with the device-appropriate model tier
3. Unsupported (terminal fallback)
"""

import asyncio
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from edgellm.device.classifier import (
    Classification,
    FoundationStatus,
    ProviderName,
    capabilities_for,
    classify,
)
from edgellm.device.probe import CapabilityProbe, CapabilitySnapshot, HostCapabilityProbe, take_snapshot
from edgellm.models.catalog import ModelDefinition
from edgellm.models.downloader import DownloadResult, ProgressCallback
from edgellm.providers.base import GenerateResult, Provider, UnsupportedDeviceError
from edgellm.providers.llama import LlamaProvider
from edgellm.providers.registry import ProviderRegistry
from edgellm.utils.logging import logger


class ResolverState(Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


class Ready(BaseModel):
    """The provider can generate right away."""

    status: Literal["ready"] = "ready"
    provider: ProviderName


class NotReady(BaseModel):
    """The provider can't generate yet, or ever."""

    model_config = ConfigDict(protected_namespaces=())

    status: Literal["not-ready"] = "not-ready"
    reason: Literal["model-download-required", "unsupported"]
    download_size_mb: Optional[int] = None
    model_name: Optional[str] = None
    message: Optional[str] = None


StatusResult = Annotated[Union[Ready, NotReady], Field(discriminator="status")]


class ProviderResolver:
    """
    Owns the active Classification/Provider pair.

    The pair is computed on the first resolve() and reused until reset().
    Concurrent resolve() calls share one probe; reset() waits for an
    in-flight resolution to finish.
    """

    def __init__(
        self,
        probe: CapabilityProbe | None = None,
        registry: ProviderRegistry | None = None,
    ):
        self.probe = probe or HostCapabilityProbe()
        self.registry = registry or ProviderRegistry()
        self.state = ResolverState.UNRESOLVED
        self._classification: Optional[Classification] = None
        self._provider: Optional[Provider] = None
        self._lock = asyncio.Lock()

    # ─────────────────────────────────────────────────────────
    # RESOLUTION
    # ─────────────────────────────────────────────────────────

    async def resolve(self) -> Classification:
        """Classify the device and pick a provider. No-op once resolved."""
        if self._provider is not None:
            return self._classification

        async with self._lock:
            if self._provider is None:
                self.state = ResolverState.RESOLVING
                try:
                    await self._resolve_locked()
                finally:
                    if self._provider is None:
                        self.state = ResolverState.UNRESOLVED

        return self._classification

    async def _resolve_locked(self) -> None:
        snapshot = await self._take_snapshot()
        foundation_status = await self._check_foundation(snapshot)
        classification = classify(snapshot, foundation_status)

        caps = classification.capabilities
        logger.info(
            f"Device: {caps.device_model or 'unknown'}, RAM: {caps.total_ram_mb / 1024:.1f}GB, "
            f"arm64: {caps.is_arm64}, provider: {classification.provider_name.value}"
        )
        if foundation_status == "unavailable":
            logger.info("Apple Foundation not available, falling back to llama.cpp")

        self._provider = self.registry.create(classification.provider_name)
        self._classification = classification
        self.state = ResolverState.RESOLVED
        logger.info(f"Selected provider: {self._provider.name.value}")

    async def _take_snapshot(self) -> Optional[CapabilitySnapshot]:
        try:
            return await take_snapshot(self.probe)
        except Exception as e:
            logger.warning(f"Device probe failed, treating device as unsupported: {e}")
            return None

    async def _check_foundation(
        self, snapshot: Optional[CapabilitySnapshot]
    ) -> Optional[FoundationStatus]:
        """Ask the native bridge, but only for devices that meet the vendor minimums."""
        if snapshot is None:
            return None
        if not capabilities_for(snapshot).is_apple_intelligence_eligible:
            return None
        try:
            status = await self.registry.bridge.is_foundation_models_enabled()
        except Exception as e:
            logger.warning(f"Foundation Models check failed: {e}")
            return "unavailable"
        return "available" if status == "available" else "unavailable"

    async def reset(self) -> None:
        """Drop the cached provider so the next resolve() probes again."""
        async with self._lock:
            await self._cleanup_provider()
            self._provider = None
            self._classification = None
            self.state = ResolverState.UNRESOLVED
            logger.info("Provider resolver reset")

    async def shutdown(self) -> None:
        """Cancel downloads, release resources and reset."""
        self.cancel_download()
        await self.reset()

    # ─────────────────────────────────────────────────────────
    # STATUS
    # ─────────────────────────────────────────────────────────

    async def get_status(self) -> Union[Ready, NotReady]:
        await self.resolve()
        provider = self._provider

        if provider.name == ProviderName.UNSUPPORTED:
            return NotReady(
                reason="unsupported",
                message=self._classification.unsupported_message,
            )

        if isinstance(provider, LlamaProvider) and not await provider.is_model_downloaded():
            model = provider.get_model_definition()
            return NotReady(
                reason="model-download-required",
                download_size_mb=model.download_size_mb,
                model_name=model.display_name,
            )

        return Ready(provider=provider.name)

    def get_provider_name(self) -> str:
        return self._provider.name.value if self._provider is not None else "none"

    def get_classification(self) -> Optional[Classification]:
        return self._classification

    def get_model_definition(self) -> Optional[ModelDefinition]:
        if isinstance(self._provider, LlamaProvider):
            return self._provider.get_model_definition()
        return None

    # ─────────────────────────────────────────────────────────
    # GENERATION & MODEL LIFECYCLE
    # ─────────────────────────────────────────────────────────

    async def generate(self, prompt: str, system_prompt: str = "") -> GenerateResult:
        await self.resolve()
        if self._provider.name == ProviderName.UNSUPPORTED:
            raise UnsupportedDeviceError()
        return await self._provider.generate(prompt, system_prompt)

    async def download_model(self, on_progress: Optional[ProgressCallback] = None) -> bool:
        await self.resolve()
        if self._provider.name == ProviderName.UNSUPPORTED:
            return False
        return await self._provider.download_model(on_progress)

    def cancel_download(self) -> None:
        if self._provider is not None:
            self._provider.cancel_download()

    def get_last_download_result(self) -> Optional[DownloadResult]:
        if isinstance(self._provider, LlamaProvider):
            return self._provider.last_download_result
        return None

    async def get_model_size(self) -> int:
        await self.resolve()
        return await self._provider.get_model_size()

    async def delete_model(self) -> bool:
        if isinstance(self._provider, LlamaProvider):
            return await self._provider.delete_model()
        return False

    async def cleanup(self) -> None:
        """Release the active provider's resources. Never raises."""
        await self._cleanup_provider()

    async def _cleanup_provider(self) -> None:
        if self._provider is None:
            return
        try:
            await self._provider.cleanup()
        except Exception as e:
            logger.warning(f"Provider cleanup failed: {e}")
