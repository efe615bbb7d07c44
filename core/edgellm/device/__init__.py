"""Device module - capability probing and classification."""

from edgellm.device.classifier import (
    Classification,
    DeviceCapabilities,
    ProviderName,
    UnsupportedReason,
    classify,
)
from edgellm.device.probe import (
    CapabilityProbe,
    CapabilitySnapshot,
    HostCapabilityProbe,
    Platform,
    StaticCapabilityProbe,
    take_snapshot,
)

__all__ = [
    "Classification",
    "DeviceCapabilities",
    "ProviderName",
    "UnsupportedReason",
    "classify",
    "CapabilityProbe",
    "CapabilitySnapshot",
    "HostCapabilityProbe",
    "Platform",
    "StaticCapabilityProbe",
    "take_snapshot",
]
