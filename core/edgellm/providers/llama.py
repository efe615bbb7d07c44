"""
On-device llama.cpp provider.
One instance per RAM tier, built around the tier's ModelDefinition.
"""

import time
from typing import Callable, Optional

from edgellm.models.catalog import ModelDefinition
from edgellm.models.downloader import DownloadCoordinator, DownloadResult, ProgressCallback
from edgellm.models.store import ModelStore
from edgellm.providers.base import GenerateResult, ModelNotDownloadedError, Provider
from edgellm.runtime.llama import LlamaRuntime
from edgellm.utils.logging import logger

RuntimeFactory = Callable[[ModelDefinition, ModelStore], LlamaRuntime]

CHARS_PER_TOKEN = 3.5
MAX_OUTPUT_TOKENS = 512


def default_runtime_factory(model: ModelDefinition, store: ModelStore) -> LlamaRuntime:
    return LlamaRuntime(
        model_path=store.path_for(model),
        n_ctx=model.context_size,
        n_threads=model.threads,
    )


def format_chatml(system_prompt: str, user_message: str) -> str:
    prompt = ""
    if system_prompt:
        prompt += f"<|im_start|>system\n{system_prompt}<|im_end|>\n"
    prompt += f"<|im_start|>user\n{user_message}<|im_end|>\n<|im_start|>assistant\n"
    return prompt


def format_llama3(system_prompt: str, user_message: str) -> str:
    prompt = "<|begin_of_text|>"
    if system_prompt:
        prompt += f"<|start_header_id|>system<|end_header_id|>\n\n{system_prompt}<|eot_id|>"
    prompt += (
        f"<|start_header_id|>user<|end_header_id|>\n\n{user_message}<|eot_id|>"
        "<|start_header_id|>assistant<|end_header_id|>\n\n"
    )
    return prompt


class LlamaProvider(Provider):
    """Local GGUF model via llama.cpp, downloaded on demand."""

    def __init__(
        self,
        model: ModelDefinition,
        store: ModelStore,
        coordinator: DownloadCoordinator,
        runtime_factory: RuntimeFactory = default_runtime_factory,
    ):
        self.model = model
        self.name = model.provider_name
        self.store = store
        self.coordinator = coordinator
        self.runtime_factory = runtime_factory
        self.last_download_result: Optional[DownloadResult] = None
        self._runtime: Optional[LlamaRuntime] = None

    def get_model_definition(self) -> ModelDefinition:
        return self.model

    def get_model_path(self):
        return self.store.path_for(self.model)

    async def is_model_downloaded(self) -> bool:
        return self.store.is_downloaded(self.model)

    async def get_model_size(self) -> int:
        return await self.coordinator.get_model_size(self.model)

    def format_prompt(self, system_prompt: str, user_message: str) -> str:
        """Apply the model's chat template and fit the prompt into the context window."""
        if self.model.chat_template == "llama3":
            prompt = format_llama3(system_prompt, user_message)
        else:
            prompt = format_chatml(system_prompt, user_message)

        max_prompt_tokens = self.model.context_size - MAX_OUTPUT_TOKENS
        max_prompt_chars = int(max_prompt_tokens * CHARS_PER_TOKEN)
        return prompt[:max_prompt_chars]

    async def generate(self, prompt: str, system_prompt: str = "") -> GenerateResult:
        start = time.perf_counter()

        if self._runtime is None:
            if not await self.is_model_downloaded():
                raise ModelNotDownloadedError(
                    f"{self.model.display_name} is not downloaded; call download_model first"
                )
            self._runtime = self.runtime_factory(self.model, self.store)
        await self._runtime.configure()

        text = await self._runtime.generate_text(
            self.format_prompt(system_prompt, prompt),
            max_tokens=MAX_OUTPUT_TOKENS,
            stop=self.model.stop_tokens,
        )
        return GenerateResult(
            text=text,
            provider=self.name,
            latency_ms=(time.perf_counter() - start) * 1000,
        )

    async def download_model(self, on_progress: Optional[ProgressCallback] = None) -> bool:
        if await self.is_model_downloaded():
            self.last_download_result = DownloadResult(
                success=True, path=str(self.get_model_path())
            )
            return True

        result = await self.coordinator.download(self.model, on_progress)
        self.last_download_result = result
        if result.success:
            logger.info(f"{self.model.display_name} downloaded and verified")
        return result.success

    def cancel_download(self) -> None:
        self.coordinator.cancel()

    async def cleanup(self) -> None:
        if self._runtime is not None:
            try:
                await self._runtime.dispose()
            except Exception as e:
                logger.warning(f"Error releasing {self.model.display_name}: {e}")
            self._runtime = None

    async def delete_model(self) -> bool:
        """Unload and remove the model file."""
        await self.cleanup()
        deleted = self.store.delete(self.model)
        if deleted:
            logger.info(f"{self.model.display_name} model deleted")
        return deleted
