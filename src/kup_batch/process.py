"""Subprocess helpers that record outcomes without enforcing exit status."""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one child process invocation."""

    args: tuple[str, ...]
    returncode: int | None
    launch_error: str | None = None
    stdout_path: Path | None = None
    duration_sec: float = 0.0

    @property
    def launched(self) -> bool:
        return self.launch_error is None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        """Render a short human-readable status for log lines."""

        if not self.launched:
            return f"launch_failed error={self.launch_error}"
        return f"returncode={self.returncode}"


def run_to_file(
    args: Sequence[str],
    stdout_path: Path,
    *,
    cwd: Path | None = None,
) -> CommandResult:
    """Run a command with stdout written to ``stdout_path`` and stderr discarded.

    The output file is truncated before the child starts, so it exists even when
    the executable cannot be launched. The exit status is returned, not checked.
    Errors opening the output file propagate to the caller.
    """

    command = tuple(str(part) for part in args)
    started = time.monotonic()
    with stdout_path.open("wb") as handle:
        try:
            completed = subprocess.run(
                command,
                stdout=handle,
                stderr=subprocess.DEVNULL,
                cwd=cwd,
                check=False,
            )
        except OSError as exc:
            return CommandResult(
                args=command,
                returncode=None,
                launch_error=str(exc),
                stdout_path=stdout_path,
                duration_sec=time.monotonic() - started,
            )
    return CommandResult(
        args=command,
        returncode=completed.returncode,
        stdout_path=stdout_path,
        duration_sec=time.monotonic() - started,
    )


def run_command(args: Sequence[str], *, cwd: Path | None = None) -> CommandResult:
    """Run a command with inherited stdio and wait for it to exit."""

    command = tuple(str(part) for part in args)
    started = time.monotonic()
    try:
        completed = subprocess.run(command, cwd=cwd, check=False)
    except OSError as exc:
        return CommandResult(
            args=command,
            returncode=None,
            launch_error=str(exc),
            duration_sec=time.monotonic() - started,
        )
    return CommandResult(
        args=command,
        returncode=completed.returncode,
        duration_sec=time.monotonic() - started,
    )


def which(executable: str) -> Path | None:
    """Return the resolved executable path, or None when it is not on PATH."""

    found = shutil.which(executable)
    if found is None:
        LOGGER.debug("process.which_missing executable=%s", executable)
        return None
    return Path(found)
