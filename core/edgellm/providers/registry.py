"""
Factory for providers, keyed by ProviderName.
Holds the shared collaborators every provider needs.
"""

from typing import Callable, Optional

from edgellm.device.classifier import ProviderName
from edgellm.models.catalog import ModelDefinition, get_model_definition
from edgellm.models.downloader import DownloadCoordinator
from edgellm.models.store import ModelStore
from edgellm.providers.apple_foundation import AppleFoundationProvider
from edgellm.providers.base import Provider
from edgellm.providers.llama import LlamaProvider, RuntimeFactory, default_runtime_factory
from edgellm.providers.unsupported import UnsupportedProvider
from edgellm.runtime.foundation import FoundationModelsBridge, UnavailableFoundationBridge


class ProviderRegistry:
    """Builds the concrete Provider for a classification result."""

    def __init__(
        self,
        bridge: FoundationModelsBridge | None = None,
        store: ModelStore | None = None,
        coordinator: DownloadCoordinator | None = None,
        catalog: Optional[list[ModelDefinition]] = None,
        runtime_factory: RuntimeFactory = default_runtime_factory,
    ):
        self.bridge = bridge or UnavailableFoundationBridge()
        self.store = store or ModelStore()
        self.coordinator = coordinator or DownloadCoordinator(self.store)
        self.catalog = catalog
        self.runtime_factory = runtime_factory

        self._factories: dict[ProviderName, Callable[[ProviderName], Provider]] = {
            ProviderName.APPLE_FOUNDATION: lambda _: AppleFoundationProvider(self.bridge),
            ProviderName.LLAMA_STANDARD: self._create_llama,
            ProviderName.LLAMA_COMPACT: self._create_llama,
            ProviderName.LLAMA_MINIMAL: self._create_llama,
            ProviderName.UNSUPPORTED: lambda _: UnsupportedProvider(),
        }

    def model_for(self, name: ProviderName) -> Optional[ModelDefinition]:
        return get_model_definition(name, self.catalog)

    def _create_llama(self, name: ProviderName) -> Provider:
        model = self.model_for(name)
        if model is None:
            # No catalog entry for this tier
            return UnsupportedProvider()
        return LlamaProvider(model, self.store, self.coordinator, self.runtime_factory)

    def create(self, name: ProviderName) -> Provider:
        return self._factories[name](name)
