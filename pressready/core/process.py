"""External process helpers.

Every colour tool, inspection tool and renderer is driven through
:func:`run_subprocess`, which suspends the calling coroutine until the
process exits. Tests replace the module-level reference in the module under
test rather than spawning real binaries.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from ..exceptions import ToolInvocationError

_LOGGER = logging.getLogger("pressready.process")


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of an external command."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, for tools that report on either stream."""
        return f"{self.stdout}{self.stderr}"


def which(executables: Sequence[str]) -> str | None:
    """Return the first executable from *executables* found on ``PATH``."""

    for candidate in executables:
        found = shutil.which(candidate)
        if found:
            _LOGGER.debug("Detected external tool: %s -> %s", candidate, found)
            return found
    return None


async def run_subprocess(command: Sequence[str], *, check: bool = True) -> CommandResult:
    """Run *command* capturing output.

    Parameters
    ----------
    command:
        Command and arguments to execute. No shell is involved.
    check:
        Whether to raise :class:`ToolInvocationError` on non-zero exit.
        Failure to spawn the process always raises.
    """

    argv = tuple(str(part) for part in command)
    _LOGGER.debug("Executing command: %s", " ".join(argv))
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ToolInvocationError(f"Failed to execute {argv[0]}: {exc}", command=argv) from exc

    stdout, stderr = await process.communicate()
    result = CommandResult(
        command=argv,
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    _LOGGER.debug(
        "Command finished with exit code %s\nstdout: %s\nstderr: %s",
        result.returncode,
        result.stdout,
        result.stderr,
    )
    if check and not result.ok:
        raise ToolInvocationError(
            f"{argv[0]} exited with code {result.returncode}: {result.stderr.strip()}",
            command=argv,
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result


def scratch_path(directory: Path, prefix: str, role: str, suffix: str) -> Path:
    """Return a per-call intermediate file name such as ``cmyk_output_<ns>.pdf``."""

    return directory / f"{prefix}_{role}_{time.time_ns()}{suffix}"


@contextmanager
def scratch_files(directory: Path, prefix: str, suffix: str, *roles: str) -> Iterator[tuple[Path, ...]]:
    """Yield intermediate paths for *roles* and delete them on every exit path."""

    directory.mkdir(parents=True, exist_ok=True)
    paths = tuple(scratch_path(directory, prefix, role, suffix) for role in roles)
    try:
        yield paths
    finally:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                _LOGGER.warning("Failed to remove intermediate file %s: %s", path, exc)


__all__ = ["CommandResult", "run_subprocess", "scratch_files", "scratch_path", "which"]
