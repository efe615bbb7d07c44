"""Runtime module - native inference bridges."""

from edgellm.runtime.foundation import (
    FoundationModelsBridge,
    FoundationSession,
    UnavailableFoundationBridge,
)
from edgellm.runtime.llama import LlamaRuntime, RuntimeStatus

__all__ = [
    "FoundationModelsBridge",
    "FoundationSession",
    "UnavailableFoundationBridge",
    "LlamaRuntime",
    "RuntimeStatus",
]
