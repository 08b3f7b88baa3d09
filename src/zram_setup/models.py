"""Data models for zram-setup."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class SupervisionKind(Enum):
    """Process supervision systems that can persist the device across boots."""

    SYSTEMD = "systemd"
    OPENRC = "openrc"
    SYSVINIT = "sysvinit"


class SizeBracket(Enum):
    """Size-selection tier a host's total memory falls into."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class DeviceStatus(Enum):
    """Lifecycle states of the zram device."""

    ABSENT = "absent"
    MODULE_LOADED = "module-loaded"
    CONFIGURED = "configured"
    SWAP_ACTIVE = "swap-active"


@dataclass(slots=True, frozen=True)
class SystemProfile:
    """Host facts captured once per invocation."""

    supervision_kind: SupervisionKind
    total_memory_mb: int


@dataclass(slots=True, frozen=True)
class SizePlan:
    """Target device size derived from a SystemProfile or an override."""

    total_memory_mb: int
    target_size_mb: int
    bracket: SizeBracket | None  # None when overridden
    overridden: bool


@dataclass(slots=True, frozen=True)
class DeviceState:
    """Observed state of the kernel-resident zram device."""

    exists: bool
    configured_size_bytes: int | None
    swap_active: bool

    @property
    def status(self) -> DeviceStatus:
        """Map the observed attributes onto the lifecycle state machine."""
        if not self.exists:
            return DeviceStatus.ABSENT
        if self.swap_active:
            return DeviceStatus.SWAP_ACTIVE
        if self.configured_size_bytes:
            return DeviceStatus.CONFIGURED
        return DeviceStatus.MODULE_LOADED


@dataclass(slots=True, frozen=True)
class PersistenceArtifact:
    """Boot-time files written for one supervision system."""

    supervision_kind: SupervisionKind
    file_paths: frozenset[Path]
    registered: bool


@dataclass(slots=True, frozen=True)
class CompressionStats:
    """Snapshot of the device's mm_stat counters."""

    original_bytes: int
    compressed_bytes: int

    @property
    def ratio(self) -> float | None:
        """Original to compressed ratio, or None when nothing is stored."""
        if self.compressed_bytes == 0:
            return None
        return self.original_bytes / self.compressed_bytes


@dataclass(slots=True, frozen=True)
class StepResult:
    """Outcome of a single best-effort step."""

    name: str
    ok: bool
    detail: str = ""
