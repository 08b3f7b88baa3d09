"""Thin boundary around the OS utilities zram-setup shells out to."""

import logging
import shutil
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CommandResult:
    """Outcome of one external command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """True when the command exited with status 0."""
        return self.returncode == 0

    @property
    def detail(self) -> str:
        """Best available explanation of a failure."""
        return self.stderr.strip() or self.stdout.strip() or f"exit status {self.returncode}"


class CommandRunner:
    """
    Runs OS utilities synchronously and never raises on failure.

    A missing executable is reported as exit status 127, like a shell would.
    """

    def run(self, *args: str) -> CommandResult:
        """Run a command to completion and capture its output."""
        logger.debug("Running: %s", " ".join(args))
        try:
            result = subprocess.run(list(args), capture_output=True, text=True, check=False)
        except FileNotFoundError as e:
            return CommandResult(args=args, returncode=127, stderr=str(e))
        except OSError as e:
            return CommandResult(args=args, returncode=126, stderr=str(e))
        return CommandResult(
            args=args,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def which(self, name: str) -> str | None:
        """Locate an executable on PATH."""
        return shutil.which(name)
