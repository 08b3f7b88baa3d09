"""Device controller for the single zram swap device."""

import logging
import time
from pathlib import Path

from zram_setup.config import (
    DEV_DIR,
    DEVICE_NAME,
    MODULE_NAME,
    PROC_SWAPS_PATH,
    SETTLE_DELAY,
    SYS_BLOCK_DIR,
)
from zram_setup.errors import (
    DeviceConfigurationError,
    ModuleLoadError,
    SwapActivationError,
)
from zram_setup.models import DeviceState, StepResult
from zram_setup.sizing import disksize_literal
from zram_setup.system import CommandRunner

logger = logging.getLogger(__name__)


class ZramDevice:
    """
    Handle on the zram0 kernel device.

    The device is kernel state shared with the rest of the system; the
    handle holds no lock and re-reads the kernel on every observe(). Each
    mutating transition returns the freshly observed DeviceState.

    Lifecycle: ABSENT -> MODULE_LOADED -> CONFIGURED -> SWAP_ACTIVE, with
    ensure_absent_or_reset() and teardown() returning to ABSENT.
    """

    def __init__(
        self,
        runner: CommandRunner | None = None,
        sys_block: Path = SYS_BLOCK_DIR,
        dev_dir: Path = DEV_DIR,
        proc_swaps: Path = PROC_SWAPS_PATH,
        settle_delay: float = SETTLE_DELAY,
    ) -> None:
        """
        Initialize the device handle.

        Args:
            runner: Executes modprobe, mkswap and the swap commands.
            sys_block: Directory holding the block device sysfs entries.
            dev_dir: Directory holding the device node.
            proc_swaps: Kernel list of active swap areas.
            settle_delay: Seconds to wait after (un)loading the module.
        """
        self._runner = runner or CommandRunner()
        self._sysfs = sys_block / DEVICE_NAME
        self._node = dev_dir / DEVICE_NAME
        self._proc_swaps = proc_swaps
        self._settle_delay = settle_delay

    @property
    def node(self) -> Path:
        """Path of the device node."""
        return self._node

    @property
    def sysfs(self) -> Path:
        """Path of the device's sysfs directory."""
        return self._sysfs

    @property
    def proc_swaps(self) -> Path:
        """Path of the kernel swap area list."""
        return self._proc_swaps

    def exists(self) -> bool:
        """Check whether the device node is present."""
        return self._node.exists()

    def is_swap_active(self) -> bool:
        """Check whether the device is listed as an active swap area."""
        try:
            lines = self._proc_swaps.read_text().splitlines()
        except OSError:
            return False
        for line in lines[1:]:
            fields = line.split()
            if fields and Path(fields[0]).name == DEVICE_NAME:
                return True
        return False

    def configured_size_bytes(self) -> int | None:
        """Current disksize in bytes, or None if it cannot be read."""
        try:
            return int((self._sysfs / "disksize").read_text().strip())
        except (OSError, ValueError):
            return None

    def observe(self) -> DeviceState:
        """Read the current device state from the kernel."""
        exists = self.exists()
        return DeviceState(
            exists=exists,
            configured_size_bytes=self.configured_size_bytes() if exists else None,
            swap_active=exists and self.is_swap_active(),
        )

    def module_available(self) -> bool:
        """Check that the zram module can be loaded on this kernel."""
        return self._runner.run("modinfo", MODULE_NAME).ok

    def _settle(self) -> None:
        if self._settle_delay > 0:
            time.sleep(self._settle_delay)

    def _step(self, name: str, *args: str) -> StepResult:
        result = self._runner.run(*args)
        return StepResult(name=name, ok=result.ok, detail="" if result.ok else result.detail)

    def _write_reset(self) -> StepResult:
        try:
            (self._sysfs / "reset").write_text("1")
        except OSError as e:
            return StepResult(name="reset", ok=False, detail=str(e))
        return StepResult(name="reset", ok=True)

    def ensure_absent_or_reset(self) -> list[StepResult]:
        """
        Release an existing device so install can reconfigure it.

        Every step is best-effort; failures are returned, never raised.
        """
        if not self.exists():
            return []
        logger.warning("zram device already exists, resetting...")
        steps = [
            self._step("swapoff", "swapoff", str(self._node)),
            self._write_reset(),
            self._step("unload-module", "modprobe", "-r", MODULE_NAME),
        ]
        self._settle()
        return steps

    def load_module(self) -> DeviceState:
        """
        Load the zram module with exactly one device.

        Raises:
            ModuleLoadError: modprobe failed.
        """
        logger.info("Loading zram module...")
        result = self._runner.run("modprobe", MODULE_NAME, "num_devices=1")
        if not result.ok:
            raise ModuleLoadError(f"Failed to load zram module: {result.detail}")
        self._settle()
        return self.observe()

    def configure(self, size_mb: int) -> DeviceState:
        """
        Set the device capacity.

        Raises:
            DeviceConfigurationError: The disksize control could not be written.
        """
        logger.info("Initializing %s with %dMB...", self._node, size_mb)
        literal = disksize_literal(size_mb)
        try:
            (self._sysfs / "disksize").write_text(literal)
        except OSError as e:
            raise DeviceConfigurationError(
                f"Failed to set {self._node} disksize to {literal}: {e}"
            ) from e
        return self.observe()

    def activate_swap(self) -> DeviceState:
        """
        Format the device as swap and enable it.

        On failure the device is left configured for inspection.

        Raises:
            SwapActivationError: mkswap or swapon failed.
        """
        logger.info("Setting up swap...")
        result = self._runner.run("mkswap", str(self._node))
        if not result.ok:
            raise SwapActivationError(f"Failed to create swap on {self._node}: {result.detail}")
        result = self._runner.run("swapon", str(self._node))
        if not result.ok:
            raise SwapActivationError(f"Failed to activate swap: {result.detail}")
        return self.observe()

    def teardown(self) -> list[StepResult]:
        """
        Deactivate swap, reset the device and unload the module.

        Safe against partially installed or already removed systems: every
        step is attempted and its result returned.
        """
        return [
            self._step("swapoff", "swapoff", str(self._node)),
            self._write_reset(),
            self._step("unload-module", "modprobe", "-r", MODULE_NAME),
        ]
