"""Thin wrapper for invoking build-tool commands such as ``dotnet``."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol, Sequence

from .errors import CommandError

LOGGER = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Callable that runs ``executable args...`` inside ``cwd``."""

    def __call__(self, cwd: Path, executable: str, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        ...


def run_command(cwd: Path, executable: str, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
    """Execute ``executable`` with ``args`` and raise on failure."""

    command = [executable, *args]
    LOGGER.debug("Running %s in %s", " ".join(command), cwd)
    try:
        process = subprocess.run(  # noqa: S603 - executable comes from the catalog
            command,
            cwd=cwd,
            capture_output=True,
            text=False,
            check=False,
        )
    except FileNotFoundError as error:
        raise CommandError(
            f"Build tool not found: {executable}",
            details={"command": command, "cwd": Path(cwd).as_posix()},
        ) from error

    stdout = process.stdout.decode("utf-8", errors="replace") if process.stdout else ""
    stderr = process.stderr.decode("utf-8", errors="replace") if process.stderr else ""
    result = subprocess.CompletedProcess(process.args, process.returncode, stdout, stderr)
    if result.returncode != 0:
        message = result.stderr.strip() or result.stdout.strip() or "unknown error"
        raise CommandError(
            f"{' '.join(command)} failed: {message}",
            details={"command": command, "returncode": result.returncode},
        )
    return result


__all__ = ["CommandRunner", "run_command"]
