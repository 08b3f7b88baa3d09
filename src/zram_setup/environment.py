"""Host detection: supervision system, total memory and distribution."""

import logging
import platform
from pathlib import Path

import psutil

from zram_setup.config import (
    INIT_SCRIPT_DIR,
    LSB_RELEASE_PATH,
    OS_RELEASE_PATH,
    SYSTEMD_RUNTIME_DIR,
)
from zram_setup.errors import DetectionError
from zram_setup.models import SupervisionKind, SystemProfile
from zram_setup.system import CommandRunner

logger = logging.getLogger(__name__)


def detect_supervision(
    runner: CommandRunner | None = None,
    runtime_dir: Path = SYSTEMD_RUNTIME_DIR,
    init_dir: Path = INIT_SCRIPT_DIR,
) -> SupervisionKind:
    """
    Determine the active process supervision system.

    Checks, in order, for a running systemd, the OpenRC management command
    and a generic init-script directory.

    Raises:
        DetectionError: None of the supported systems is present.
    """
    runner = runner or CommandRunner()
    if runtime_dir.is_dir():
        return SupervisionKind.SYSTEMD
    if runner.which("rc-update"):
        return SupervisionKind.OPENRC
    if init_dir.is_dir():
        return SupervisionKind.SYSVINIT
    raise DetectionError("Unable to detect init system")


def detect_total_memory_mb() -> int:
    """Total physical memory in whole megabytes, truncated."""
    # psutil reports MemTotal from /proc/meminfo scaled to bytes
    return psutil.virtual_memory().total // (1024 * 1024)


def detect_profile(
    runner: CommandRunner | None = None,
    runtime_dir: Path = SYSTEMD_RUNTIME_DIR,
    init_dir: Path = INIT_SCRIPT_DIR,
) -> SystemProfile:
    """Capture the SystemProfile for this invocation."""
    kind = detect_supervision(runner, runtime_dir=runtime_dir, init_dir=init_dir)
    total = detect_total_memory_mb()
    logger.debug("Detected %s with %dMB RAM", kind.value, total)
    return SystemProfile(supervision_kind=kind, total_memory_mb=total)


def _read_key_values(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in path.read_text().splitlines():
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip()] = value.strip().strip("\"'")
    return values


def detect_distro(
    os_release: Path = OS_RELEASE_PATH,
    lsb_release: Path = LSB_RELEASE_PATH,
) -> str:
    """Distribution identifier, for display only."""
    try:
        if os_release.is_file():
            distro = _read_key_values(os_release).get("ID")
            if distro:
                return distro
        if lsb_release.is_file():
            distro = _read_key_values(lsb_release).get("DISTRIB_ID")
            if distro:
                return distro.lower()
    except OSError as e:
        logger.debug("Could not read release files: %s", e)
    return platform.system()
