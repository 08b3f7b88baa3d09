"""zram-setup - command dispatcher and entry point."""

import argparse
import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path

from zram_setup.config import (
    APP_NAME,
    APP_VERSION,
    INIT_SCRIPT_DIR,
    LOG_LEVEL_ENV_VAR,
    SIZE_ENV_VAR,
    SYSTEMD_RUNTIME_DIR,
    Settings,
)
from zram_setup.device import ZramDevice
from zram_setup.environment import detect_distro, detect_profile, detect_supervision
from zram_setup.errors import ModuleLoadError, PrivilegeError, RegistrationWarning, ZramSetupError
from zram_setup.models import DeviceStatus, StepResult, SystemProfile
from zram_setup.persistence import backend_for
from zram_setup.sizing import compute_size
from zram_setup.status import StatusReporter, format_report
from zram_setup.system import CommandRunner

logger = logging.getLogger(__name__)

COMMANDS = ("install", "remove", "status", "help")

EPILOG = f"""\
Environment Variables:
    {SIZE_ENV_VAR}    Override calculated zram size (in MB)
    {LOG_LEVEL_ENV_VAR}    Logging level (default INFO)

Example:
    {APP_NAME} install
    {SIZE_ENV_VAR}=1024 {APP_NAME} install
    {APP_NAME} status
    {APP_NAME} remove

Do not run install and remove concurrently.
"""


def setup_logging(level_name: str) -> None:
    """Configure logging to stderr."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
    )


def log_steps(steps: list[StepResult]) -> None:
    """Log best-effort step results; failures are reported, never raised."""
    for step in steps:
        if step.ok:
            logger.debug("%s: ok", step.name)
        else:
            logger.debug("%s: ignored failure (%s)", step.name, step.detail)


class ZramSetupApp:
    """Orchestrates install, remove and status."""

    def __init__(
        self,
        settings: Settings | None = None,
        runner: CommandRunner | None = None,
        device: ZramDevice | None = None,
        root: Path = Path("/"),
        systemd_runtime_dir: Path = SYSTEMD_RUNTIME_DIR,
        init_script_dir: Path = INIT_SCRIPT_DIR,
        reporter: StatusReporter | None = None,
        geteuid: Callable[[], int] = os.geteuid,
    ) -> None:
        """
        Initialize the application.

        Args:
            settings: Environment-supplied settings.
            runner: Executes OS utilities.
            device: Handle on the zram device.
            root: Filesystem root the boot artifacts are written under.
            systemd_runtime_dir: Marker directory of a running systemd.
            init_script_dir: Generic init-script directory.
            reporter: Status reporter, built from the device by default.
            geteuid: Returns the effective user id.
        """
        self._settings = settings or Settings()
        self._runner = runner or CommandRunner()
        self._device = device or ZramDevice(self._runner)
        self._root = root
        self._systemd_runtime_dir = systemd_runtime_dir
        self._init_script_dir = init_script_dir
        self._reporter = reporter or StatusReporter(self._device)
        self._geteuid = geteuid

    def check_root(self) -> None:
        """Abort unless running as root."""
        if self._geteuid() != 0:
            raise PrivilegeError("This script must be run as root")

    def detect_profile(self) -> SystemProfile:
        """Detect the supervision system and total memory."""
        return detect_profile(
            self._runner,
            runtime_dir=self._systemd_runtime_dir,
            init_dir=self._init_script_dir,
        )

    def install(self) -> None:
        """Configure the device, persist it and show the resulting status."""
        self.check_root()
        logger.info("Starting zram setup...")

        profile = self.detect_profile()
        plan = compute_size(profile.total_memory_mb, self._settings.size_override_mb)
        logger.info(
            "Detected: %s | Init: %s | RAM: %dMB",
            detect_distro(),
            profile.supervision_kind.value,
            profile.total_memory_mb,
        )
        if plan.overridden:
            logger.info("Will create %dMB zram swap (from %s)", plan.target_size_mb, SIZE_ENV_VAR)
        else:
            logger.info(
                "Will create %dMB zram swap (%s system)", plan.target_size_mb, plan.bracket.value
            )

        if not self._device.module_available():
            raise ModuleLoadError("zram module not available on this system")

        log_steps(self._device.ensure_absent_or_reset())

        backend = backend_for(profile.supervision_kind, self._runner, self._root)

        self._device.load_module()
        try:
            self._device.configure(plan.target_size_mb)
            self._device.activate_swap()
            logger.info("zram initialized successfully")
            backend.generate_artifact()
        except ZramSetupError:
            state = self._device.observe()
            logger.error(
                "zram device left in %s state; run '%s remove' to clean up",
                state.status.value,
                APP_NAME,
            )
            raise

        try:
            backend.register()
        except RegistrationWarning as e:
            logger.warning("%s", e)

        logger.info("Setup complete! zram will auto-initialize on boot")
        self.status(profile)

    def remove(self) -> None:
        """Tear down the device and delete its boot artifacts."""
        self.check_root()
        logger.info("Removing zram setup...")

        log_steps(self._device.teardown())

        kind = detect_supervision(
            self._runner,
            runtime_dir=self._systemd_runtime_dir,
            init_dir=self._init_script_dir,
        )
        backend = backend_for(kind, self._runner, self._root)
        log_steps(backend.unregister())
        log_steps(backend.remove_artifact())

        if self._device.observe().status is not DeviceStatus.ABSENT:
            logger.warning("zram device still present after teardown")
        logger.info("zram removed successfully")

    def status(self, profile: SystemProfile | None = None) -> None:
        """Print the current status report to stdout."""
        logger.info("Current status:")
        summary = self._reporter.report(profile or self.detect_profile())
        print()
        print(format_report(summary))
        if summary.swap_entry is None:
            logger.warning("ZRAM swap not currently active")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Install and configure zram compressed swap",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="install",
        choices=COMMANDS,
        help="install (default), remove, status or help",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the zram-setup command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_environ()
    setup_logging(settings.log_level)

    if args.command == "help":
        parser.print_help()
        return 0

    app = ZramSetupApp(settings)
    actions = {
        "install": app.install,
        "remove": app.remove,
        "status": app.status,
    }
    try:
        actions[args.command]()
    except ZramSetupError as e:
        logger.error("%s", e)
        return e.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
