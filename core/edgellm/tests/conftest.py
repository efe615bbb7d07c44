"""Shared fixtures: a simulated device, fake native bridges and a fake model hub."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from edgellm.device.classifier import ProviderName
from edgellm.device.probe import Platform, StaticCapabilityProbe
from edgellm.engine.resolver import ProviderResolver
from edgellm.models.catalog import ModelDefinition
from edgellm.models.downloader import DownloadCoordinator
from edgellm.models.store import ModelStore
from edgellm.providers.registry import ProviderRegistry

GB = 1024**3
MB = 1024**2


class FakeFoundationSession:
    def __init__(self):
        self.configure = AsyncMock()
        self.generate_text = AsyncMock(return_value="Generated text")
        self.dispose = MagicMock()


class FakeFoundationBridge:
    """Stands in for the native Apple Foundation Models module."""

    def __init__(self, availability: str = "available"):
        self.availability = availability
        self.error: Exception | None = None
        self.session = FakeFoundationSession()
        self.sessions_created = 0

    async def is_foundation_models_enabled(self):
        if self.error is not None:
            raise self.error
        return self.availability

    def create_session(self):
        self.sessions_created += 1
        return self.session


class FakeRuntime:
    """Stands in for LlamaRuntime so no GGUF model is loaded."""

    def __init__(self):
        self.configure = AsyncMock()
        self.generate_text = AsyncMock(return_value="Llama response")
        self.dispose = AsyncMock()


class FakeHub:
    """Serves catalog model files through httpx.MockTransport."""

    def __init__(self, catalog: list[ModelDefinition]):
        self.catalog = catalog
        self.status_code = 200
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code)
        for model in self.catalog:
            if request.url.path.endswith(model.file_name):
                return httpx.Response(200, content=b"\0" * model.size_bytes)
        return httpx.Response(404)


@pytest.fixture
def catalog():
    return [
        ModelDefinition(
            id="standard",
            display_name="Test Standard",
            provider_name=ProviderName.LLAMA_STANDARD,
            repo_id="test/standard-GGUF",
            file_name="standard.gguf",
            size_bytes=2 * MB,
            context_size=2048,
        ),
        ModelDefinition(
            id="compact",
            display_name="Test Compact",
            provider_name=ProviderName.LLAMA_COMPACT,
            repo_id="test/compact-GGUF",
            file_name="compact.gguf",
            size_bytes=2 * MB,
            chat_template="llama3",
            stop_tokens=["<|eot_id|>", "<|end_of_text|>"],
        ),
        ModelDefinition(
            id="minimal",
            display_name="Test Minimal",
            provider_name=ProviderName.LLAMA_MINIMAL,
            repo_id="test/minimal-GGUF",
            file_name="minimal.gguf",
            size_bytes=1 * MB,
        ),
    ]


@pytest.fixture
def device():
    """An 8GB arm64 Android phone. Tests mutate it to simulate other devices."""
    return StaticCapabilityProbe(
        total_ram_bytes=8 * GB,
        supported_abis=["arm64-v8a", "armeabi-v7a"],
        device_model="Pixel 8",
        platform=Platform.ANDROID,
        os_version="14",
    )


@pytest.fixture
def iphone():
    """An iPhone 15 Pro on iOS 26, eligible for Apple Foundation Models."""
    return StaticCapabilityProbe(
        total_ram_bytes=8 * GB,
        supported_abis=["arm64"],
        device_model="iPhone16,1",
        platform=Platform.IOS,
        os_version="26.0",
    )


@pytest.fixture
def bridge():
    return FakeFoundationBridge()


@pytest.fixture
def store(tmp_path):
    return ModelStore(tmp_path / "models")


@pytest.fixture
def hub(catalog):
    return FakeHub(catalog)


@pytest.fixture
def coordinator(store, hub):
    return DownloadCoordinator(
        store, transport=httpx.MockTransport(hub.handler), chunk_size=256 * 1024
    )


@pytest.fixture
def runtimes():
    """Every FakeRuntime handed out by the registry, in creation order."""
    return []


@pytest.fixture
def registry(bridge, store, coordinator, catalog, runtimes):
    def runtime_factory(model, store):
        runtime = FakeRuntime()
        runtimes.append(runtime)
        return runtime

    return ProviderRegistry(
        bridge=bridge,
        store=store,
        coordinator=coordinator,
        catalog=catalog,
        runtime_factory=runtime_factory,
    )


@pytest.fixture
def resolver(device, registry):
    return ProviderResolver(probe=device, registry=registry)


@pytest.fixture
def write_model(store):
    """Place a model file on disk, full size unless told otherwise."""

    def _write(model: ModelDefinition, size: int | None = None):
        path = store.path_for(model)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\0" * (model.size_bytes if size is None else size))
        return path

    return _write
