"""Providers module - text-generation backends."""

from edgellm.providers.apple_foundation import AppleFoundationProvider
from edgellm.providers.base import (
    UNSUPPORTED_MESSAGE,
    GenerateResult,
    ModelNotDownloadedError,
    Provider,
    UnsupportedDeviceError,
)
from edgellm.providers.llama import LlamaProvider
from edgellm.providers.registry import ProviderRegistry
from edgellm.providers.unsupported import UnsupportedProvider

__all__ = [
    "AppleFoundationProvider",
    "UNSUPPORTED_MESSAGE",
    "GenerateResult",
    "ModelNotDownloadedError",
    "Provider",
    "UnsupportedDeviceError",
    "LlamaProvider",
    "ProviderRegistry",
    "UnsupportedProvider",
]
