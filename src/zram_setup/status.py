"""Status reporting for the zram swap device."""

import logging
from dataclasses import dataclass
from pathlib import Path

import psutil

from zram_setup.config import LSB_RELEASE_PATH, OS_RELEASE_PATH
from zram_setup.device import ZramDevice
from zram_setup.environment import detect_distro, detect_profile
from zram_setup.models import CompressionStats, SystemProfile

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StatusSummary:
    """Everything the status report shows."""

    profile: SystemProfile
    distro: str
    memory_total: int
    memory_used: int
    memory_available: int
    swap_total: int
    swap_used: int
    swap_free: int
    swap_entry: str | None
    stats: CompressionStats | None


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:.1f}{unit}" if unit != "B" else f"{size:d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def read_compression_stats(mm_stat: Path) -> CompressionStats | None:
    """
    Read the original and compressed byte counters from mm_stat.

    Only the first two whitespace-separated fields are used.
    """
    try:
        fields = mm_stat.read_text().split()
        return CompressionStats(original_bytes=int(fields[0]), compressed_bytes=int(fields[1]))
    except (OSError, IndexError, ValueError) as e:
        logger.debug("Could not read %s: %s", mm_stat, e)
        return None


def read_zram_swap_entry(proc_swaps: Path) -> str | None:
    """Return the /proc/swaps line for a zram device, if any."""
    try:
        lines = proc_swaps.read_text().splitlines()
    except OSError:
        return None
    for line in lines[1:]:
        if "zram" in line:
            return line.strip()
    return None


class StatusReporter:
    """Collects live memory, swap and compression data."""

    def __init__(
        self,
        device: ZramDevice,
        os_release: Path = OS_RELEASE_PATH,
        lsb_release: Path = LSB_RELEASE_PATH,
    ) -> None:
        self._device = device
        self._os_release = os_release
        self._lsb_release = lsb_release

    def report(self, profile: SystemProfile | None = None) -> StatusSummary:
        """
        Gather a StatusSummary.

        Args:
            profile: Reuse an already detected profile instead of detecting again.
        """
        profile = profile or detect_profile()
        mem = psutil.virtual_memory()
        swap = psutil.swap_memory()

        swap_entry = None
        stats = None
        if self._device.is_swap_active():
            swap_entry = read_zram_swap_entry(self._device.proc_swaps)
            # Statistics are never cached
            stats = read_compression_stats(self._device.sysfs / "mm_stat")

        return StatusSummary(
            profile=profile,
            distro=detect_distro(self._os_release, self._lsb_release),
            memory_total=mem.total,
            memory_used=mem.used,
            memory_available=mem.available,
            swap_total=swap.total,
            swap_used=swap.used,
            swap_free=swap.free,
            swap_entry=swap_entry,
            stats=stats,
        )


def format_report(summary: StatusSummary) -> str:
    """Render a StatusSummary as plain text."""
    lines = [
        f"{'Init System':<20}: {summary.profile.supervision_kind.value}",
        f"{'Distribution':<20}: {summary.distro}",
        f"{'Total RAM':<20}: {summary.profile.total_memory_mb} MB",
        "",
        "Memory Info:",
        f"  Mem:  total {format_bytes(summary.memory_total)}"
        f"  used {format_bytes(summary.memory_used)}"
        f"  available {format_bytes(summary.memory_available)}",
        f"  Swap: total {format_bytes(summary.swap_total)}"
        f"  used {format_bytes(summary.swap_used)}"
        f"  free {format_bytes(summary.swap_free)}",
        "",
    ]

    if summary.swap_entry is None:
        return "\n".join(lines)

    lines += ["ZRAM Swap Info:", f"  {summary.swap_entry}", ""]

    stats = summary.stats
    ratio = stats.ratio if stats is not None else None
    if ratio is not None:
        lines += [
            "Compression Statistics:",
            f"  Original Size: {format_bytes(stats.original_bytes)}",
            f"  Compressed Size: {format_bytes(stats.compressed_bytes)}",
            f"  Compression Ratio: {ratio:.2f}:1",
        ]
    return "\n".join(lines)
