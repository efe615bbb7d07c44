"""
Device classification.
Maps a capability snapshot to the provider that should run on the device.
Pure and deterministic: the async Foundation Models check is done by the
caller and passed in as a plain value.
"""

import re
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, computed_field

from edgellm import config
from edgellm.device.probe import CapabilitySnapshot, Platform

FoundationStatus = Literal["available", "unavailable"]

ARM64_ABIS = frozenset({"arm64-v8a", "arm64", "aarch64"})


class ProviderName(str, Enum):
    """Backends the resolver can pick, in order of preference."""

    APPLE_FOUNDATION = "apple-foundation"
    LLAMA_STANDARD = "llama-standard"
    LLAMA_COMPACT = "llama-compact"
    LLAMA_MINIMAL = "llama-minimal"
    UNSUPPORTED = "unsupported"


class UnsupportedReason(str, Enum):
    """Which gate rejected the device."""

    RAM = "ram"
    ARCHITECTURE = "architecture"
    PROBE = "probe"


class DeviceCapabilities(BaseModel):
    """Derived facts about the device."""

    total_ram_mb: float
    is_arm64: bool
    device_model: str = ""
    platform: Platform = Platform.OTHER
    os_major_version: Optional[int] = None
    is_apple_intelligence_eligible: bool = False


class Classification(BaseModel):
    """Result of classifying a device."""

    provider_name: ProviderName
    capabilities: DeviceCapabilities
    eligible_for_foundation_models: bool = False
    unsupported_reason: Optional[UnsupportedReason] = None

    @computed_field
    @property
    def unsupported_message(self) -> Optional[str]:
        """User-facing explanation of why the device is unsupported."""
        if self.unsupported_reason == UnsupportedReason.RAM:
            min_gb = config.MINIMAL_TIER_MIN_RAM_MB / 1024
            found_gb = self.capabilities.total_ram_mb / 1024
            return (
                f"On-device AI needs at least {min_gb:.0f} GB of RAM "
                f"(this device has {found_gb:.1f} GB)"
            )
        if self.unsupported_reason == UnsupportedReason.ARCHITECTURE:
            return "On-device AI requires a 64-bit ARM processor"
        if self.unsupported_reason == UnsupportedReason.PROBE:
            return "Unable to read device capabilities"
        return None


def is_arm64(abis) -> bool:
    """Check whether any reported ABI is 64-bit ARM."""
    return any(abi.lower() in ARM64_ABIS for abi in abis)


def parse_os_major(os_version: str) -> Optional[int]:
    """Extract the major version ("26.1" -> 26), or None if unparseable."""
    match = re.match(r"\s*(\d+)", os_version or "")
    return int(match.group(1)) if match else None


def is_apple_intelligence_eligible(
    os_platform: Platform, device_model: str, os_major: Optional[int]
) -> bool:
    """
    Check the vendor minimums for Apple Foundation Models.
    Device identifiers look like "iPhone16,1" or "iPad14,1".
    """
    if os_platform != Platform.IOS:
        return False
    if os_major is None or os_major < config.FOUNDATION_MIN_IOS_MAJOR:
        return False

    match = re.match(r"(iPhone|iPad)(\d+),\d+", device_model or "")
    if not match:
        return False

    family, major = match.group(1), int(match.group(2))
    if family == "iPhone":
        return major >= config.FOUNDATION_MIN_IPHONE_MAJOR
    return major >= config.FOUNDATION_MIN_IPAD_MAJOR


def tier_for_ram(total_ram_mb: float) -> Optional[ProviderName]:
    """Pick the llama tier for a 64-bit device, or None below the lowest tier."""
    if total_ram_mb >= config.STANDARD_TIER_MIN_RAM_MB:
        return ProviderName.LLAMA_STANDARD
    if total_ram_mb >= config.COMPACT_TIER_MIN_RAM_MB:
        return ProviderName.LLAMA_COMPACT
    if total_ram_mb >= config.MINIMAL_TIER_MIN_RAM_MB:
        return ProviderName.LLAMA_MINIMAL
    return None


def capabilities_for(snapshot: CapabilitySnapshot) -> DeviceCapabilities:
    os_major = parse_os_major(snapshot.os_version)
    return DeviceCapabilities(
        total_ram_mb=snapshot.total_ram_bytes / (1024 * 1024),
        is_arm64=is_arm64(snapshot.supported_abis),
        device_model=snapshot.device_model,
        platform=snapshot.platform,
        os_major_version=os_major if snapshot.platform == Platform.IOS else None,
        is_apple_intelligence_eligible=is_apple_intelligence_eligible(
            snapshot.platform, snapshot.device_model, os_major
        ),
    )


def classify(
    snapshot: Optional[CapabilitySnapshot],
    foundation_status: Optional[FoundationStatus] = None,
) -> Classification:
    """
    Classify a device. First match wins:

    1. No snapshot (probe failed) -> unsupported
    2. Eligible iOS device with Foundation Models "available" -> apple-foundation
    3. Not arm64 -> unsupported, regardless of RAM
    4. RAM tiers -> llama-standard / llama-compact / llama-minimal / unsupported

    Args:
        snapshot: Device facts, or None if the probe failed
        foundation_status: Result of the native Foundation Models check,
            or None if it was not performed

    Returns:
        Classification for the device
    """
    if snapshot is None:
        return Classification(
            provider_name=ProviderName.UNSUPPORTED,
            capabilities=DeviceCapabilities(total_ram_mb=0, is_arm64=False),
            unsupported_reason=UnsupportedReason.PROBE,
        )

    caps = capabilities_for(snapshot)
    eligible = caps.is_apple_intelligence_eligible

    if eligible and foundation_status == "available":
        return Classification(
            provider_name=ProviderName.APPLE_FOUNDATION,
            capabilities=caps,
            eligible_for_foundation_models=True,
        )

    if not caps.is_arm64:
        return Classification(
            provider_name=ProviderName.UNSUPPORTED,
            capabilities=caps,
            eligible_for_foundation_models=eligible,
            unsupported_reason=UnsupportedReason.ARCHITECTURE,
        )

    tier = tier_for_ram(caps.total_ram_mb)
    if tier is None:
        return Classification(
            provider_name=ProviderName.UNSUPPORTED,
            capabilities=caps,
            eligible_for_foundation_models=eligible,
            unsupported_reason=UnsupportedReason.RAM,
        )

    return Classification(
        provider_name=tier,
        capabilities=caps,
        eligible_for_foundation_models=eligible,
    )
