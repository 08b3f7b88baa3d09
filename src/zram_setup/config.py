"""
Configuration module for zram-setup.

Constants for the device, kernel interfaces and boot artifacts, plus the
settings read from the process environment at the entry point.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# =============================================================================
# Application Constants
# =============================================================================

APP_NAME = "zram-setup"
APP_VERSION = "1.0.0"

SIZE_ENV_VAR = "ZRAM_SIZE_MB"
LOG_LEVEL_ENV_VAR = "ZRAM_SETUP_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

# =============================================================================
# Device
# =============================================================================

MODULE_NAME = "zram"
DEVICE_NAME = "zram0"

# Seconds to wait for udev after loading or unloading the module
SETTLE_DELAY = 1.0

# =============================================================================
# Kernel Interface Paths
# =============================================================================

SYS_BLOCK_DIR = Path("/sys/block")
DEV_DIR = Path("/dev")
PROC_SWAPS_PATH = Path("/proc/swaps")
OS_RELEASE_PATH = Path("/etc/os-release")
LSB_RELEASE_PATH = Path("/etc/lsb-release")

# =============================================================================
# Supervision Detection
# =============================================================================

SYSTEMD_RUNTIME_DIR = Path("/run/systemd/system")
INIT_SCRIPT_DIR = Path("/etc/init.d")

# =============================================================================
# Boot Artifacts (relative to the filesystem root)
# =============================================================================

SERVICE_NAME = "zram"
SYSTEMD_UNIT_PATH = Path("etc/systemd/system/zram.service")
SYSTEMD_INIT_SCRIPT_PATH = Path("usr/local/bin/zram-init.sh")
INIT_D_SCRIPT_PATH = Path("etc/init.d/zram")

# Boot artifacts use a fixed size rather than the install-time plan
BOOT_SIZE_PRIMARY = "2G"
BOOT_SIZE_FALLBACK = "1G"


@dataclass(slots=True, frozen=True)
class Settings:
    """Settings supplied through the environment."""

    size_override_mb: int | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from an environment mapping.

        Args:
            environ: Mapping to read from. Defaults to os.environ.
        """
        if environ is None:
            environ = os.environ
        return cls(
            size_override_mb=parse_size_override(environ.get(SIZE_ENV_VAR)),
            log_level=environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper(),
        )


def parse_size_override(value: str | None) -> int | None:
    """Return a positive integer override, or None for anything else."""
    if value is None or not value.strip():
        return None
    try:
        size = int(value.strip())
    except ValueError:
        logger.debug("Ignoring non-numeric %s=%r", SIZE_ENV_VAR, value)
        return None
    if size <= 0:
        logger.debug("Ignoring non-positive %s=%r", SIZE_ENV_VAR, value)
        return None
    return size
