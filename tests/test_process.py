from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from pressready.core.process import run_subprocess, scratch_files, scratch_path
from pressready.exceptions import ToolInvocationError


def test_run_subprocess_captures_output() -> None:
    result = asyncio.run(run_subprocess([sys.executable, "-c", "print('hello')"]))
    assert result.ok
    assert result.stdout.strip() == "hello"


def test_run_subprocess_nonzero_exit_raises() -> None:
    command = [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"]
    with pytest.raises(ToolInvocationError) as excinfo:
        asyncio.run(run_subprocess(command))
    assert excinfo.value.returncode == 3
    assert "bad" in excinfo.value.stderr


def test_run_subprocess_without_check_returns_result() -> None:
    result = asyncio.run(run_subprocess([sys.executable, "-c", "raise SystemExit(1)"], check=False))
    assert result.returncode == 1
    assert not result.ok


def test_missing_executable_raises() -> None:
    with pytest.raises(ToolInvocationError):
        asyncio.run(run_subprocess(["pressready-no-such-tool-xyz"]))


def test_scratch_path_naming(tmp_path: Path) -> None:
    path = scratch_path(tmp_path, "cmyk", "output", ".pdf")
    prefix, role, stamp = path.stem.split("_")
    assert (prefix, role) == ("cmyk", "output")
    assert stamp.isdigit()
    assert path.suffix == ".pdf"


def test_scratch_files_removed_on_error(tmp_path: Path) -> None:
    directory = tmp_path / "scratch"
    with pytest.raises(RuntimeError):
        with scratch_files(directory, "cmyk", ".jpg", "input", "output") as (source, target):
            source.write_bytes(b"a")
            target.write_bytes(b"b")
            raise RuntimeError("interrupted")
    assert list(directory.iterdir()) == []
