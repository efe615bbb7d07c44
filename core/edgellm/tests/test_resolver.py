"""Tests for the provider resolver state machine."""

import asyncio

import pytest

from edgellm.device.classifier import ProviderName, UnsupportedReason
from edgellm.engine.resolver import NotReady, ProviderResolver, Ready, ResolverState
from edgellm.providers import UnsupportedDeviceError
from edgellm.providers.registry import ProviderRegistry

GB = 1024**3


class TestInitialState:
    def test_nothing_resolved(self, resolver):
        assert resolver.state == ResolverState.UNRESOLVED
        assert resolver.get_classification() is None
        assert resolver.get_provider_name() == "none"
        assert resolver.get_model_definition() is None

    @pytest.mark.asyncio
    async def test_cleanup_before_resolve_does_not_raise(self, resolver):
        await resolver.cleanup()

    def test_cancel_download_before_resolve_is_noop(self, resolver):
        resolver.cancel_download()


class TestResolve:
    @pytest.mark.asyncio
    async def test_resolves_standard_tier(self, resolver):
        classification = await resolver.resolve()

        assert classification.provider_name == ProviderName.LLAMA_STANDARD
        assert resolver.state == ResolverState.RESOLVED
        assert resolver.get_provider_name() == "llama-standard"
        assert resolver.get_classification().capabilities.total_ram_mb > 0

    @pytest.mark.asyncio
    async def test_resolve_is_idempotent_even_if_device_changes(self, resolver, device):
        await resolver.resolve()
        device.total_ram_bytes = 2 * GB
        device.supported_abis = ["x86_64"]

        await resolver.resolve()

        assert resolver.get_provider_name() == "llama-standard"
        assert device.calls == 1

    @pytest.mark.asyncio
    async def test_reset_then_resolve_reclassifies(self, resolver, device):
        await resolver.resolve()
        assert resolver.get_provider_name() == "llama-standard"

        device.total_ram_bytes = int(3.5 * GB)
        await resolver.reset()
        await resolver.resolve()

        assert resolver.get_provider_name() == "llama-minimal"

    @pytest.mark.asyncio
    async def test_concurrent_resolves_probe_once(self, resolver, device):
        results = await asyncio.gather(*(resolver.resolve() for _ in range(5)))

        assert device.calls == 1
        assert all(r is results[0] for r in results)

    @pytest.mark.asyncio
    async def test_reset_waits_for_inflight_resolve(self, resolver):
        task = asyncio.create_task(resolver.resolve())
        await asyncio.sleep(0)

        await resolver.reset()
        classification = await task

        assert classification is not None
        assert resolver.state == ResolverState.UNRESOLVED
        assert resolver.get_classification() is None

    @pytest.mark.asyncio
    async def test_probe_failure_degrades_to_unsupported(self, resolver, device):
        device.error = OSError("sysctl failed")

        classification = await resolver.resolve()

        assert classification.provider_name == ProviderName.UNSUPPORTED
        assert classification.unsupported_reason == UnsupportedReason.PROBE


class TestAppleFoundationResolution:
    @pytest.fixture
    def resolver(self, iphone, registry):
        return ProviderResolver(probe=iphone, registry=registry)

    @pytest.mark.asyncio
    async def test_selects_apple_foundation_when_available(self, resolver):
        await resolver.resolve()
        assert resolver.get_provider_name() == "apple-foundation"

    @pytest.mark.asyncio
    async def test_falls_back_to_llama_when_unavailable(self, resolver, bridge):
        bridge.availability = "unavailable"
        await resolver.resolve()
        assert resolver.get_provider_name() == "llama-standard"

    @pytest.mark.asyncio
    async def test_bridge_error_counts_as_unavailable(self, resolver, bridge):
        bridge.error = RuntimeError("Not supported")
        await resolver.resolve()
        assert resolver.get_provider_name() == "llama-standard"

    @pytest.mark.asyncio
    async def test_status_is_ready_without_download(self, resolver):
        status = await resolver.get_status()
        assert status == Ready(provider=ProviderName.APPLE_FOUNDATION)

    @pytest.mark.asyncio
    async def test_no_model_definition(self, resolver):
        await resolver.resolve()
        assert resolver.get_model_definition() is None
        assert await resolver.get_model_size() == 0

    @pytest.mark.asyncio
    async def test_generate_uses_bridge(self, resolver):
        result = await resolver.generate("Hello", "You are helpful.")
        assert result.text == "Generated text"
        assert result.provider == ProviderName.APPLE_FOUNDATION


class TestStatus:
    @pytest.mark.asyncio
    async def test_resolves_implicitly(self, resolver):
        await resolver.get_status()
        assert resolver.state == ResolverState.RESOLVED

    @pytest.mark.asyncio
    async def test_download_required_before_model_is_present(self, device, store, bridge):
        # Default catalog: real download sizes
        resolver = ProviderResolver(probe=device, registry=ProviderRegistry(bridge=bridge, store=store))

        status = await resolver.get_status()

        assert isinstance(status, NotReady)
        assert status.reason == "model-download-required"
        assert status.download_size_mb > 0
        assert status.model_name

    @pytest.mark.asyncio
    async def test_ready_once_model_is_present(self, resolver, write_model, catalog):
        write_model(catalog[0])
        assert await resolver.get_status() == Ready(provider=ProviderName.LLAMA_STANDARD)

    @pytest.mark.asyncio
    async def test_unsupported_ram_message(self, resolver, device):
        device.total_ram_bytes = 2 * GB

        status = await resolver.get_status()

        assert status.reason == "unsupported"
        assert "RAM" in status.message

    @pytest.mark.asyncio
    async def test_unsupported_architecture_message(self, resolver, device):
        device.supported_abis = ["x86_64", "x86"]

        status = await resolver.get_status()

        assert status.reason == "unsupported"
        assert "64-bit" in status.message


class TestOperations:
    @pytest.mark.asyncio
    async def test_generate_on_unsupported_device(self, resolver, device):
        device.total_ram_bytes = 2 * GB

        with pytest.raises(UnsupportedDeviceError) as exc_info:
            await resolver.generate("hello")

        assert str(exc_info.value) == "LLM not available on this device"

    @pytest.mark.asyncio
    async def test_generate_with_llama(self, resolver, write_model, catalog, runtimes):
        write_model(catalog[0])

        result = await resolver.generate("hello")

        assert result.text == "Llama response"
        assert result.provider == ProviderName.LLAMA_STANDARD
        assert len(runtimes) == 1

    @pytest.mark.asyncio
    async def test_download_on_unsupported_device(self, resolver, device, hub, store):
        device.supported_abis = ["x86_64"]

        assert await resolver.download_model() is False
        assert hub.requests == []
        assert not store.models_dir.exists()

    @pytest.mark.asyncio
    async def test_download_then_ready(self, resolver):
        updates = []

        assert await resolver.download_model(updates.append) is True

        assert updates[-1].percentage == 100
        assert resolver.get_last_download_result().success is True
        assert await resolver.get_status() == Ready(provider=ProviderName.LLAMA_STANDARD)

    @pytest.mark.asyncio
    async def test_cancel_download(self, resolver):
        def on_progress(progress):
            if progress.percentage > 0:
                resolver.cancel_download()

        assert await resolver.download_model(on_progress) is False
        assert resolver.get_last_download_result().cancelled is True
        assert isinstance(await resolver.get_status(), NotReady)

    @pytest.mark.asyncio
    async def test_model_definition_matches_tier(self, resolver, device):
        await resolver.resolve()
        assert resolver.get_model_definition().id == "standard"

        device.total_ram_bytes = 2 * GB
        await resolver.reset()
        await resolver.resolve()
        assert resolver.get_model_definition() is None

    @pytest.mark.asyncio
    async def test_delete_model(self, resolver, write_model, catalog):
        write_model(catalog[0])
        await resolver.resolve()

        assert await resolver.delete_model() is True
        assert (await resolver.get_status()).reason == "model-download-required"

    @pytest.mark.asyncio
    async def test_cleanup_keeps_resolution(self, resolver, write_model, catalog, runtimes):
        write_model(catalog[0])
        await resolver.generate("hello")

        await resolver.cleanup()

        runtimes[0].dispose.assert_awaited_once()
        assert resolver.get_provider_name() == "llama-standard"

    @pytest.mark.asyncio
    async def test_cleanup_never_raises(self, resolver, write_model, catalog, runtimes):
        write_model(catalog[0])
        await resolver.generate("hello")
        runtimes[0].dispose.side_effect = RuntimeError("boom")

        await resolver.cleanup()

    @pytest.mark.asyncio
    async def test_shutdown_resets(self, resolver):
        await resolver.resolve()
        await resolver.shutdown()
        assert resolver.get_classification() is None
