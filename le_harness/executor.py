"""Run external commands and capture their output."""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from le_common.errors import CommandError

logger = logging.getLogger(__name__)

MISSING_PROGRAM_RC = 127


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one external command."""

    argv: tuple[str, ...]
    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def failure(self) -> Optional[str]:
        """Standard error on non-zero exit, None on success."""
        if self.ok:
            return None
        return self.stderr

    @property
    def display(self) -> str:
        return shlex.join(self.argv)


class CommandExecutor:
    """Run commands from pre-tokenized argument lists.

    Non-zero exits are reported through ``CommandResult`` instead of raised;
    ``check`` is the raising variant for one-shot callers. No timeout is
    applied, so a hung child process blocks the caller.
    """

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd

    def run(self, argv: Sequence[str]) -> CommandResult:
        args = tuple(str(arg) for arg in argv)
        if not args:
            raise ValueError("CommandExecutor.run requires a non-empty argv")
        logger.debug("Running command: %s", shlex.join(args))
        try:
            proc = subprocess.run(
                args,
                capture_output=True,
                text=True,
                check=False,
                cwd=self.cwd,
            )
        except OSError as exc:
            return CommandResult(args, "", str(exc), MISSING_PROGRAM_RC)
        return CommandResult(args, proc.stdout or "", proc.stderr or "", proc.returncode)

    def check(self, argv: Sequence[str], *, action: str | None = None) -> CommandResult:
        """Run ``argv`` and raise CommandError with the captured stderr on failure."""
        result = self.run(argv)
        if not result.ok:
            label = action or result.display
            raise CommandError(
                f"{label} failed: {result.stderr.strip() or result.stdout.strip()}",
                context={"command": result.display, "returncode": result.returncode},
            )
        return result
