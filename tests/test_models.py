"""Tests for zram-setup data models."""

from pathlib import Path

import pytest

from zram_setup.models import (
    CompressionStats,
    DeviceState,
    DeviceStatus,
    PersistenceArtifact,
    SizeBracket,
    SizePlan,
    SupervisionKind,
    SystemProfile,
)


def test_system_profile_creation():
    """Test SystemProfile dataclass creation."""
    profile = SystemProfile(supervision_kind=SupervisionKind.OPENRC, total_memory_mb=4039)

    assert profile.supervision_kind is SupervisionKind.OPENRC
    assert profile.total_memory_mb == 4039


def test_size_plan_is_frozen():
    """Test that SizePlan is immutable (frozen)."""
    plan = SizePlan(
        total_memory_mb=4039,
        target_size_mb=2019,
        bracket=SizeBracket.MEDIUM,
        overridden=False,
    )

    with pytest.raises(AttributeError):
        plan.target_size_mb = 1


def test_persistence_artifact_uses_slots():
    """Test that PersistenceArtifact uses __slots__."""
    artifact = PersistenceArtifact(
        supervision_kind=SupervisionKind.SYSVINIT,
        file_paths=frozenset({Path("/etc/init.d/zram")}),
        registered=False,
    )

    assert not hasattr(artifact, "__dict__")


def test_supervision_kind_values():
    """Test SupervisionKind enum has expected values."""
    assert [kind.value for kind in SupervisionKind] == ["systemd", "openrc", "sysvinit"]


class TestDeviceState:
    """Tests for mapping observed attributes onto DeviceStatus."""

    @pytest.mark.parametrize(
        "exists,size,swap_active,expected",
        [
            (False, None, False, DeviceStatus.ABSENT),
            (True, 0, False, DeviceStatus.MODULE_LOADED),
            (True, None, False, DeviceStatus.MODULE_LOADED),
            (True, 2 * 1024**3, False, DeviceStatus.CONFIGURED),
            (True, 2 * 1024**3, True, DeviceStatus.SWAP_ACTIVE),
        ],
    )
    def test_status(self, exists, size, swap_active, expected):
        """Test each observable combination maps to one lifecycle state."""
        state = DeviceState(exists=exists, configured_size_bytes=size, swap_active=swap_active)
        assert state.status is expected


class TestCompressionStats:
    """Tests for the compression ratio."""

    def test_ratio(self):
        """Test ratio is original over compressed."""
        stats = CompressionStats(original_bytes=10240, compressed_bytes=2048)
        assert stats.ratio == 5.0

    def test_ratio_undefined_when_nothing_compressed(self):
        """Test a zero compressed size yields no ratio instead of dividing."""
        stats = CompressionStats(original_bytes=10240, compressed_bytes=0)
        assert stats.ratio is None
