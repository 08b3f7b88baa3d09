"""Shared fixtures: a fake host with a simulated zram kernel interface."""

import shutil
from pathlib import Path
from types import SimpleNamespace

import psutil
import pytest

from zram_setup.app import ZramSetupApp
from zram_setup.config import Settings
from zram_setup.device import ZramDevice
from zram_setup.status import StatusReporter
from zram_setup.system import CommandResult

PROC_SWAPS_HEADER = "Filename\t\t\t\tType\t\tSize\t\tUsed\t\tPriority\n"


class FakeRunner:
    """
    Stands in for CommandRunner.

    Simulates modprobe, mkswap and swapon/swapoff against files under a
    temporary root, and records every command it is asked to run.
    """

    def __init__(self, root: Path, commands: set[str] | None = None) -> None:
        self.root = root
        self.calls: list[tuple[str, ...]] = []
        self.commands = set(commands or ())
        self.failures: set[tuple[str, ...]] = set()
        self.module_available = True

    @property
    def sysfs(self) -> Path:
        return self.root / "sys" / "block" / "zram0"

    @property
    def node(self) -> Path:
        return self.root / "dev" / "zram0"

    @property
    def proc_swaps(self) -> Path:
        return self.root / "proc" / "swaps"

    def fail(self, *args: str) -> None:
        """Make a command (matched on its leading arguments) fail."""
        self.failures.add(args)

    def _swap_lines(self) -> list[str]:
        return self.proc_swaps.read_text().splitlines(keepends=True)[1:]

    def _fails(self, args: tuple[str, ...]) -> bool:
        return any(args[: len(f)] == f for f in self.failures)

    def run(self, *args: str) -> CommandResult:
        self.calls.append(args)
        if self._fails(args):
            return CommandResult(args=args, returncode=1, stderr="simulated failure")

        ok = CommandResult(args=args, returncode=0)
        match args:
            case ("modinfo", "zram"):
                if not self.module_available:
                    return CommandResult(args=args, returncode=1, stderr="Module zram not found.")
            case ("modprobe", "zram", *_):
                self.node.touch()
                self.sysfs.mkdir(parents=True, exist_ok=True)
                (self.sysfs / "disksize").write_text("0\n")
                (self.sysfs / "reset").write_text("")
            case ("modprobe", "-r", "zram"):
                if any(Path(line.split()[0]).name == "zram0" for line in self._swap_lines()):
                    return CommandResult(args=args, returncode=1, stderr="Module zram is in use")
                self.node.unlink(missing_ok=True)
                shutil.rmtree(self.sysfs, ignore_errors=True)
            case ("mkswap", device):
                if not Path(device).exists():
                    return CommandResult(args=args, returncode=1, stderr="No such device")
            case ("swapon", device):
                if not self.node.exists():
                    return CommandResult(args=args, returncode=255, stderr="No such device")
                with self.proc_swaps.open("a") as f:
                    f.write(f"{device}\t\t\t\tpartition\t2097148\t\t0\t\t100\n")
            case ("swapoff", device):
                lines = self._swap_lines()
                remaining = [line for line in lines if not line.startswith(device)]
                if len(remaining) == len(lines):
                    return CommandResult(args=args, returncode=255, stderr="Invalid argument")
                self.proc_swaps.write_text(PROC_SWAPS_HEADER + "".join(remaining))
        return ok

    def which(self, name: str) -> str | None:
        return f"/usr/sbin/{name}" if name in self.commands else None

    def ran(self, *args: str) -> bool:
        """True if a command with these leading arguments was run."""
        return any(call[: len(args)] == args for call in self.calls)


@pytest.fixture
def fake_root(tmp_path: Path) -> Path:
    """An empty filesystem tree with the kernel interfaces zram-setup reads."""
    (tmp_path / "sys" / "block").mkdir(parents=True)
    (tmp_path / "dev").mkdir()
    (tmp_path / "proc").mkdir()
    (tmp_path / "proc" / "swaps").write_text(PROC_SWAPS_HEADER)
    (tmp_path / "run").mkdir()
    (tmp_path / "etc").mkdir()
    return tmp_path


@pytest.fixture
def runner(fake_root: Path) -> FakeRunner:
    return FakeRunner(fake_root)


@pytest.fixture
def device(fake_root: Path, runner: FakeRunner) -> ZramDevice:
    return ZramDevice(
        runner,
        sys_block=fake_root / "sys" / "block",
        dev_dir=fake_root / "dev",
        proc_swaps=fake_root / "proc" / "swaps",
        settle_delay=0,
    )


@pytest.fixture
def fake_memory(monkeypatch):
    """Patch psutil to report a host with a given amount of RAM."""

    def _set(total_mb: int) -> None:
        total = total_mb * 1024 * 1024
        monkeypatch.setattr(
            psutil,
            "virtual_memory",
            lambda: SimpleNamespace(total=total, used=total // 2, available=total // 2),
        )
        monkeypatch.setattr(
            psutil,
            "swap_memory",
            lambda: SimpleNamespace(total=0, used=0, free=0),
        )

    _set(4039)
    return _set


@pytest.fixture
def make_app(fake_root: Path, runner: FakeRunner, device: ZramDevice, fake_memory):
    """Build a ZramSetupApp wired to the fake host for a supervision system."""

    def _make(kind: str = "systemd", size_override_mb: int | None = None) -> ZramSetupApp:
        systemd_dir = fake_root / "run" / "systemd" / "system"
        init_dir = fake_root / "etc" / "init.d"
        if kind == "systemd":
            systemd_dir.mkdir(parents=True, exist_ok=True)
            runner.commands.add("systemctl")
        elif kind == "openrc":
            runner.commands.add("rc-update")
        elif kind == "sysvinit":
            init_dir.mkdir(parents=True, exist_ok=True)
            runner.commands.add("update-rc.d")
        return ZramSetupApp(
            settings=Settings(size_override_mb=size_override_mb),
            runner=runner,
            device=device,
            root=fake_root,
            systemd_runtime_dir=systemd_dir,
            init_script_dir=init_dir,
            reporter=StatusReporter(
                device,
                os_release=fake_root / "etc" / "os-release",
                lsb_release=fake_root / "etc" / "lsb-release",
            ),
            geteuid=lambda: 0,
        )

    return _make
