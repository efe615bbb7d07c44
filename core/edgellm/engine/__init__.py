"""Engine module - provider resolution."""

from edgellm.engine.resolver import (
    NotReady,
    ProviderResolver,
    Ready,
    ResolverState,
    StatusResult,
)

__all__ = [
    "NotReady",
    "ProviderResolver",
    "Ready",
    "ResolverState",
    "StatusResult",
]
