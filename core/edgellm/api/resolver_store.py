"""Shared resolver instance for API routes."""

from typing import Optional

from edgellm.engine.resolver import ProviderResolver

resolver: Optional[ProviderResolver] = None


def get_resolver() -> ProviderResolver:
    """Get or create the resolver instance."""
    global resolver
    if resolver is None:
        resolver = ProviderResolver()
    return resolver
