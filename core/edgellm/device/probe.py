"""
Device capability probing.
The probe only reports raw facts; deciding what they mean is the classifier's job.
"""

import asyncio
import platform as host_platform
from enum import Enum
from typing import Protocol

import psutil
from pydantic import BaseModel, ConfigDict


class Platform(str, Enum):
    """Operating system family of the device."""

    IOS = "ios"
    ANDROID = "android"
    OTHER = "other"


class CapabilitySnapshot(BaseModel):
    """Raw device facts, read once per classification."""

    model_config = ConfigDict(frozen=True)

    total_ram_bytes: int
    supported_abis: frozenset[str]
    device_model: str
    platform: Platform
    os_version: str


class CapabilityProbe(Protocol):
    """Source of device facts. Every call may raise."""

    async def get_total_ram_bytes(self) -> int: ...

    async def get_supported_abis(self) -> list[str]: ...

    async def get_device_model(self) -> str: ...

    async def get_platform(self) -> Platform: ...

    async def get_os_version(self) -> str: ...


async def take_snapshot(probe: CapabilityProbe) -> CapabilitySnapshot:
    """Read every fact from the probe into an immutable snapshot."""
    total_ram, abis, model, os_platform, os_version = await asyncio.gather(
        probe.get_total_ram_bytes(),
        probe.get_supported_abis(),
        probe.get_device_model(),
        probe.get_platform(),
        probe.get_os_version(),
    )
    return CapabilitySnapshot(
        total_ram_bytes=total_ram,
        supported_abis=frozenset(abis),
        device_model=model,
        platform=os_platform,
        os_version=os_version,
    )


class HostCapabilityProbe:
    """
    Probe for the machine the process runs on.
    Uses psutil for memory and the platform module for everything else.
    """

    # platform.machine() values -> ABI names used by mobile runtimes
    MACHINE_ABIS: dict[str, list[str]] = {
        "arm64": ["arm64-v8a", "arm64"],
        "aarch64": ["arm64-v8a", "aarch64"],
        "x86_64": ["x86_64"],
        "amd64": ["x86_64"],
        "i386": ["x86"],
        "i686": ["x86"],
        "armv7l": ["armeabi-v7a"],
    }

    async def get_total_ram_bytes(self) -> int:
        return psutil.virtual_memory().total

    async def get_supported_abis(self) -> list[str]:
        machine = host_platform.machine().lower()
        return self.MACHINE_ABIS.get(machine, [machine])

    async def get_device_model(self) -> str:
        return host_platform.node() or "unknown"

    async def get_platform(self) -> Platform:
        system = host_platform.system().lower()
        if system == "ios":
            return Platform.IOS
        if system == "android":
            return Platform.ANDROID
        return Platform.OTHER

    async def get_os_version(self) -> str:
        return host_platform.release()


class StaticCapabilityProbe:
    """
    Simulated device with mutable facts.
    Used in tests and to preview how a given device would be classified.
    """

    def __init__(
        self,
        total_ram_bytes: int = 8 * 1024**3,
        supported_abis: list[str] | None = None,
        device_model: str = "Pixel 8",
        platform: Platform = Platform.ANDROID,
        os_version: str = "14",
    ):
        self.total_ram_bytes = total_ram_bytes
        self.supported_abis = supported_abis if supported_abis is not None else ["arm64-v8a"]
        self.device_model = device_model
        self.platform = platform
        self.os_version = os_version
        self.error: Exception | None = None
        self.calls = 0

    def _check(self):
        if self.error is not None:
            raise self.error

    async def get_total_ram_bytes(self) -> int:
        self.calls += 1
        self._check()
        return self.total_ram_bytes

    async def get_supported_abis(self) -> list[str]:
        self._check()
        return list(self.supported_abis)

    async def get_device_model(self) -> str:
        self._check()
        return self.device_model

    async def get_platform(self) -> Platform:
        self._check()
        return self.platform

    async def get_os_version(self) -> str:
        self._check()
        return self.os_version
