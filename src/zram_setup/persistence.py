"""
Boot-time persistence for the zram device.

One backend per supervision system. Each writes an artifact that repeats
the device setup at boot (module load, fixed-size configuration, swap
activation) and registers it with the supervision system. The boot
artifacts always try 2G then 1G; they do not carry the install-time size.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from zram_setup.config import (
    BOOT_SIZE_FALLBACK,
    BOOT_SIZE_PRIMARY,
    DEVICE_NAME,
    INIT_D_SCRIPT_PATH,
    MODULE_NAME,
    SERVICE_NAME,
    SYSTEMD_INIT_SCRIPT_PATH,
    SYSTEMD_UNIT_PATH,
)
from zram_setup.errors import PersistenceError, RegistrationWarning
from zram_setup.models import PersistenceArtifact, StepResult, SupervisionKind
from zram_setup.system import CommandRunner

logger = logging.getLogger(__name__)

# =============================================================================
# Artifact Templates
# =============================================================================

_DISKSIZE = f"/sys/block/{DEVICE_NAME}/disksize"
_NODE = f"/dev/{DEVICE_NAME}"

BOOT_SETUP_COMMANDS = (
    f"modprobe {MODULE_NAME} num_devices=1 2>/dev/null\n"
    "sleep 1\n"
    f"echo {BOOT_SIZE_PRIMARY} > {_DISKSIZE} 2>/dev/null"
    f" || echo {BOOT_SIZE_FALLBACK} > {_DISKSIZE} 2>/dev/null\n"
    f"mkswap {_NODE} 2>/dev/null\n"
    f"swapon {_NODE} 2>/dev/null\n"
)

BOOT_TEARDOWN_COMMANDS = (
    f"swapoff {_NODE} 2>/dev/null\n"
    f"echo 1 > /sys/block/{DEVICE_NAME}/reset 2>/dev/null\n"
    f"modprobe -r {MODULE_NAME} 2>/dev/null\n"
)

LSB_HEADER = """\
### BEGIN INIT INFO
# Provides:          zram
# Required-Start:    $local_fs
# Required-Stop:     $local_fs
# Default-Start:     2 3 4 5
# Default-Stop:      0 1 6
# Short-Description: Initialize ZRAM swap device
# Description:       Initialize ZRAM compressed RAM-based swap device
### END INIT INFO
"""

SYSTEMD_INIT_SCRIPT = "#!/bin/sh\n" + BOOT_SETUP_COMMANDS

SYSTEMD_UNIT = f"""\
[Unit]
Description=Initialize ZRAM compressed swap device
After=systemd-modules-load.service
Before=swap.target

[Service]
Type=oneshot
ExecStart=/{SYSTEMD_INIT_SCRIPT_PATH}
RemainAfterExit=yes

[Install]
WantedBy=multi-user.target
"""


def _indent(commands: str, prefix: str) -> str:
    return "".join(prefix + line + "\n" for line in commands.splitlines())


OPENRC_SCRIPT = (
    "#!/sbin/openrc-run\n\n"
    + LSB_HEADER
    + "\n"
    + "depend() {\n    need localmount\n    before swap\n}\n\n"
    + 'start() {\n    ebegin "Starting ZRAM swap device"\n'
    + _indent(BOOT_SETUP_COMMANDS, "    ")
    + "    eend $?\n}\n\n"
    + 'stop() {\n    ebegin "Stopping ZRAM swap device"\n'
    + _indent(BOOT_TEARDOWN_COMMANDS, "    ")
    + "    eend $?\n}\n\n"
    + "status() {\n"
    + f"    if [ -e {_NODE} ]; then\n"
    + '        einfo "ZRAM device is active"\n'
    + "        swapon -s 2>/dev/null | grep zram\n"
    + "    else\n"
    + '        einfo "ZRAM device not found"\n'
    + "    fi\n}\n"
)

SYSVINIT_SCRIPT = (
    "#!/bin/sh\n\n"
    + LSB_HEADER
    + '\ncase "$1" in\n'
    + "    start)\n"
    + '        echo "Starting ZRAM swap device..."\n'
    + _indent(BOOT_SETUP_COMMANDS, "        ")
    + '        echo "ZRAM swap device initialized"\n'
    + "        ;;\n"
    + "    stop)\n"
    + '        echo "Stopping ZRAM swap device..."\n'
    + _indent(BOOT_TEARDOWN_COMMANDS, "        ")
    + '        echo "ZRAM swap device stopped"\n'
    + "        ;;\n"
    + "    restart)\n"
    + "        $0 stop\n        sleep 1\n        $0 start\n"
    + "        ;;\n"
    + "    status)\n"
    + f"        if [ -e {_NODE} ]; then\n"
    + '            echo "ZRAM device is active"\n'
    + f'            swapon -s 2>/dev/null | grep zram || echo "No swap on {_NODE}"\n'
    + "        else\n"
    + '            echo "ZRAM device not found"\n'
    + "        fi\n"
    + "        ;;\n"
    + "    *)\n"
    + '        echo "Usage: $0 {start|stop|restart|status}"\n'
    + "        exit 1\n"
    + "        ;;\n"
    + "esac\n\nexit 0\n"
)


# =============================================================================
# Backends
# =============================================================================


class PersistenceBackend(ABC):
    """
    Boot-time persistence for one supervision system.

    File paths are relative to ``root`` so the same backend can write into
    a staging tree.
    """

    kind: SupervisionKind
    # Relative path -> (file contents, mode)
    files: dict[Path, tuple[str, int]]

    def __init__(self, runner: CommandRunner | None = None, root: Path = Path("/")) -> None:
        self._runner = runner or CommandRunner()
        self._root = root

    @property
    def file_paths(self) -> frozenset[Path]:
        """Absolute paths of every artifact file."""
        return frozenset(self._root / rel for rel in self.files)

    def artifact(self, registered: bool = False) -> PersistenceArtifact:
        """Describe this backend's artifact."""
        return PersistenceArtifact(
            supervision_kind=self.kind,
            file_paths=self.file_paths,
            registered=registered,
        )

    def generate_artifact(self) -> PersistenceArtifact:
        """
        Write the boot files with their modes; scripts are executable.

        Raises:
            PersistenceError: A file could not be written.
        """
        logger.info("Creating %s service...", self.kind.value)
        for rel, (content, mode) in self.files.items():
            path = self._root / rel
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content)
                path.chmod(mode)
            except OSError as e:
                raise PersistenceError(f"Failed to write {path}: {e}") from e
            logger.debug("Wrote %s (mode %o)", path, mode)
        return self.artifact()

    def _step(self, name: str, *args: str) -> StepResult:
        result = self._runner.run(*args)
        return StepResult(name=name, ok=result.ok, detail="" if result.ok else result.detail)

    def _require(self, *args: str) -> None:
        result = self._runner.run(*args)
        if not result.ok:
            raise RegistrationWarning(
                f"{' '.join(args)} failed ({result.detail}); "
                f"{self.kind.value} service created but not registered"
            )

    @abstractmethod
    def register(self) -> PersistenceArtifact:
        """
        Enable the artifact with the supervision system.

        Raises:
            RegistrationWarning: The files exist but are not registered.
        """

    @abstractmethod
    def unregister(self) -> list[StepResult]:
        """Best-effort inverse of register()."""

    def remove_artifact(self) -> list[StepResult]:
        """Delete every artifact file; missing files are not failures."""
        steps = []
        for path in sorted(self.file_paths):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                steps.append(StepResult(name=f"remove {path}", ok=False, detail=str(e)))
            else:
                steps.append(StepResult(name=f"remove {path}", ok=True))
        return steps


class SystemdBackend(PersistenceBackend):
    """A oneshot unit running a small init script."""

    kind = SupervisionKind.SYSTEMD
    files = {
        SYSTEMD_INIT_SCRIPT_PATH: (SYSTEMD_INIT_SCRIPT, 0o755),
        SYSTEMD_UNIT_PATH: (SYSTEMD_UNIT, 0o644),
    }

    def register(self) -> PersistenceArtifact:
        self._require("systemctl", "daemon-reload")
        self._require("systemctl", "enable", f"{SERVICE_NAME}.service")
        logger.info("systemd service created and enabled")
        return self.artifact(registered=True)

    def unregister(self) -> list[StepResult]:
        return [self._step("disable", "systemctl", "disable", f"{SERVICE_NAME}.service")]

    def remove_artifact(self) -> list[StepResult]:
        steps = super().remove_artifact()
        steps.append(self._step("daemon-reload", "systemctl", "daemon-reload"))
        return steps


class OpenRCBackend(PersistenceBackend):
    """An openrc-run script in the default runlevel."""

    kind = SupervisionKind.OPENRC
    files = {INIT_D_SCRIPT_PATH: (OPENRC_SCRIPT, 0o755)}

    def register(self) -> PersistenceArtifact:
        if not self._runner.which("rc-update"):
            raise RegistrationWarning("rc-update not found, service created but not auto-registered")
        self._require("rc-update", "add", SERVICE_NAME, "default")
        logger.info("OpenRC service created and registered")
        return self.artifact(registered=True)

    def unregister(self) -> list[StepResult]:
        return [self._step("rc-update del", "rc-update", "del", SERVICE_NAME, "default")]


class SysVinitBackend(PersistenceBackend):
    """An LSB init script registered with update-rc.d or chkconfig."""

    kind = SupervisionKind.SYSVINIT
    files = {INIT_D_SCRIPT_PATH: (SYSVINIT_SCRIPT, 0o755)}

    def register(self) -> PersistenceArtifact:
        if self._runner.which("update-rc.d"):
            self._require("update-rc.d", SERVICE_NAME, "defaults")
            logger.info("SysVinit service created and registered")
        elif self._runner.which("chkconfig"):
            self._require("chkconfig", "--add", SERVICE_NAME)
            logger.info("SysVinit service created and registered with chkconfig")
        else:
            raise RegistrationWarning("Unable to register service with init system tools")
        return self.artifact(registered=True)

    def unregister(self) -> list[StepResult]:
        if self._runner.which("update-rc.d"):
            return [self._step("update-rc.d remove", "update-rc.d", SERVICE_NAME, "remove")]
        if self._runner.which("chkconfig"):
            return [self._step("chkconfig --del", "chkconfig", "--del", SERVICE_NAME)]
        return []


BACKENDS: dict[SupervisionKind, type[PersistenceBackend]] = {
    SupervisionKind.SYSTEMD: SystemdBackend,
    SupervisionKind.OPENRC: OpenRCBackend,
    SupervisionKind.SYSVINIT: SysVinitBackend,
}


def backend_for(
    kind: SupervisionKind,
    runner: CommandRunner | None = None,
    root: Path = Path("/"),
) -> PersistenceBackend:
    """Instantiate the backend for a supervision system."""
    return BACKENDS[kind](runner=runner, root=root)
