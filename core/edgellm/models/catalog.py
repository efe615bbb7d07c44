"""
Catalog of on-device models, one per llama RAM tier.
Larger tiers trade download size for answer quality.
"""

from typing import Literal, Optional

from huggingface_hub import hf_hub_url
from pydantic import BaseModel

from edgellm.device.classifier import ProviderName


class ModelDefinition(BaseModel):
    """A downloadable GGUF model for one llama tier."""

    id: str  # Tier ID: "standard"
    display_name: str  # "Qwen 2.5 1.5B Instruct"
    provider_name: ProviderName
    repo_id: str  # HF repo: "Qwen/Qwen2.5-1.5B-Instruct-GGUF"
    file_name: str  # GGUF file, also the local file name
    size_bytes: int  # Approximate, used for progress and integrity checks
    context_size: int = 2048
    threads: int = 4
    chat_template: Literal["chatml", "llama3"] = "chatml"
    stop_tokens: list[str] = ["<|im_end|>", "<|im_start|>"]

    @property
    def download_size_mb(self) -> int:
        return round(self.size_bytes / (1024 * 1024))

    @property
    def download_url(self) -> str:
        return hf_hub_url(self.repo_id, self.file_name)


MODEL_CATALOG: list[ModelDefinition] = [
    ModelDefinition(
        id="standard",
        display_name="Qwen 2.5 1.5B Instruct",
        provider_name=ProviderName.LLAMA_STANDARD,
        repo_id="Qwen/Qwen2.5-1.5B-Instruct-GGUF",
        file_name="qwen2.5-1.5b-instruct-q4_k_m.gguf",
        size_bytes=1_117_320_736,
        context_size=4096,
        threads=6,
    ),
    ModelDefinition(
        id="compact",
        display_name="Llama 3.2 1B Instruct",
        provider_name=ProviderName.LLAMA_COMPACT,
        repo_id="bartowski/Llama-3.2-1B-Instruct-GGUF",
        file_name="Llama-3.2-1B-Instruct-Q4_K_M.gguf",
        size_bytes=807_694_464,
        context_size=2048,
        threads=4,
        chat_template="llama3",
        stop_tokens=["<|eot_id|>", "<|end_of_text|>"],
    ),
    ModelDefinition(
        id="minimal",
        display_name="Qwen 2.5 0.5B Instruct",
        provider_name=ProviderName.LLAMA_MINIMAL,
        repo_id="Qwen/Qwen2.5-0.5B-Instruct-GGUF",
        file_name="qwen2.5-0.5b-instruct-q4_k_m.gguf",
        size_bytes=491_400_032,
        context_size=2048,
        threads=4,
    ),
]


def get_model_definition(
    provider_name: ProviderName,
    catalog: Optional[list[ModelDefinition]] = None,
) -> Optional[ModelDefinition]:
    """Look up the model for a provider. None for non-llama providers."""
    for model in catalog if catalog is not None else MODEL_CATALOG:
        if model.provider_name == provider_name:
            return model
    return None
