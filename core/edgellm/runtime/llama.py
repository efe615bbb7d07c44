"""
llama.cpp runtime for one GGUF model.
The model is loaded into this process; blocking calls run in the default executor.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Optional

from edgellm.utils.logging import logger


class RuntimeStatus(Enum):
    """Status of the loaded model."""

    STOPPED = "stopped"
    LOADING = "loading"
    RUNNING = "running"
    ERROR = "error"


class LlamaRuntime:
    """
    Wraps a llama_cpp.Llama instance behind configure/generate_text/dispose.
    CPU-only by default so the same settings work on every tier.
    """

    def __init__(
        self,
        model_path: Path,
        n_ctx: int = 2048,
        n_threads: int = 4,
        n_gpu_layers: int = 0,
    ):
        self.model_path = model_path
        self.n_ctx = n_ctx
        self.n_threads = n_threads
        self.n_gpu_layers = n_gpu_layers
        self.status = RuntimeStatus.STOPPED
        self.error_message: Optional[str] = None
        self._llm = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self.status == RuntimeStatus.RUNNING and self._llm is not None

    async def configure(self) -> None:
        """Load the model if it isn't loaded yet."""
        async with self._lock:
            if self.is_running:
                return

            if not self.model_path.exists():
                raise FileNotFoundError(f"Model not found: {self.model_path}")

            logger.info(
                f"Loading {self.model_path.name} - ctx={self.n_ctx}, threads={self.n_threads}"
            )
            self.status = RuntimeStatus.LOADING

            try:
                self._llm = await self._load_model()
                self.status = RuntimeStatus.RUNNING
                logger.info(f"{self.model_path.name} loaded successfully")
            except Exception as e:
                self.status = RuntimeStatus.ERROR
                self.error_message = str(e)
                logger.error(f"Failed to load {self.model_path.name}: {e}")
                raise

    async def _load_model(self):
        """Load model in thread pool."""
        from llama_cpp import Llama

        loop = asyncio.get_running_loop()

        def do_load():
            try:
                return Llama(
                    model_path=str(self.model_path),
                    n_ctx=self.n_ctx,
                    n_threads=self.n_threads,
                    n_gpu_layers=self.n_gpu_layers,
                    verbose=False,
                )
            except Exception as e:
                raise RuntimeError(f"Model loading failed: {e}") from e

        return await loop.run_in_executor(None, do_load)

    async def generate_text(
        self,
        prompt: str,
        max_tokens: int = 512,
        temperature: float = 0.7,
        top_p: float = 0.9,
        stop: Optional[list[str]] = None,
    ) -> str:
        """
        Raw completion on an already formatted prompt.

        Args:
            prompt: Prompt including chat template markers
            max_tokens: Max tokens to generate
            temperature: Sampling temperature
            top_p: Nucleus sampling threshold
            stop: Stop sequences

        Returns:
            Generated text
        """
        if not self.is_running:
            raise RuntimeError(f"Model {self.model_path.name} is {self.status.value}")

        llm = self._llm
        loop = asyncio.get_running_loop()

        def do_generate():
            # Each completion starts from an empty KV cache
            llm.reset()
            return llm.create_completion(
                prompt=prompt,
                max_tokens=max_tokens,
                temperature=temperature,
                top_p=top_p,
                stop=stop or [],
            )

        response = await loop.run_in_executor(None, do_generate)
        return response["choices"][0]["text"] or ""

    async def dispose(self) -> None:
        """Unload the model. Safe to call when nothing is loaded."""
        async with self._lock:
            if self._llm is not None:
                try:
                    self._llm.close()
                except Exception as e:
                    logger.warning(f"Error during model cleanup: {e}")
                self._llm = None
                logger.info(f"Unloaded {self.model_path.name}")
            self.status = RuntimeStatus.STOPPED
