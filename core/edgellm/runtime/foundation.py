"""
Bridge to Apple Foundation Models.
The native side lives in the host app; this module only defines the seam.
"""

from typing import Literal, Protocol

FoundationAvailability = Literal["available", "unavailable"]


class FoundationSession(Protocol):
    """A Foundation Models language session."""

    async def configure(self, instructions: str) -> None: ...

    async def generate_text(self, prompt: str) -> str: ...

    def dispose(self) -> None: ...


class FoundationModelsBridge(Protocol):
    """Native module exposing Apple's on-device model."""

    async def is_foundation_models_enabled(self) -> FoundationAvailability: ...

    def create_session(self) -> FoundationSession: ...


class UnavailableFoundationBridge:
    """Bridge for hosts without Apple Intelligence. Always unavailable."""

    async def is_foundation_models_enabled(self) -> FoundationAvailability:
        return "unavailable"

    def create_session(self) -> FoundationSession:
        raise RuntimeError("Apple Foundation Models are not available on this host")
