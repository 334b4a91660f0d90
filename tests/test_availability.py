from __future__ import annotations

import asyncio
import dataclasses

import pytest

from conftest import failed, missing, ok
from pressready.color import availability
from pressready.color.availability import ToolAvailability, ToolInfo, ToolName, detect_tools, probe_tools


@pytest.fixture(autouse=True)
def _reset_cache():
    availability.clear_cache()
    yield
    availability.clear_cache()


def _handler(argv):
    executable = argv[0]
    if executable == "magick":
        return ok(argv, "Version: ImageMagick 7.1.1-21 Q16-HDRI x86_64")
    if executable == "exiftool":
        return ok(argv, "12.76\n")
    if executable == "inkscape":
        return ok(argv, "Inkscape 1.3.2 (091e20e, 2023-11-25)")
    if executable == "jpgicc":
        return failed(argv, returncode=127)
    return missing(argv)


def test_probe_tools_builds_snapshot(monkeypatch, runner_factory) -> None:
    runner = runner_factory(_handler)
    monkeypatch.setattr(availability, "run_subprocess", runner)

    snapshot = asyncio.run(probe_tools())

    assert snapshot.available_names() == ["exiftool", "imagemagick", "inkscape"]
    magick = snapshot.get(ToolName.IMAGEMAGICK)
    assert magick.invocation_command == "magick"
    assert magick.version_major == 7
    assert not snapshot.is_available(ToolName.GHOSTSCRIPT)
    assert snapshot.command(ToolName.JPGICC) is None
    # ``convert`` is only tried when ``magick`` is unusable.
    assert "convert" not in runner.executables()
    # every Ghostscript name is tried before giving up
    assert {"gs", "gswin64c", "gswin32c"} <= set(runner.executables())


def test_probe_tools_falls_back_to_imagemagick_six(monkeypatch, runner_factory) -> None:
    def handler(argv):
        if argv[0] == "convert":
            return ok(argv, "Version: ImageMagick 6.9.12-98 Q16")
        return missing(argv)

    monkeypatch.setattr(availability, "run_subprocess", runner_factory(handler))

    snapshot = asyncio.run(probe_tools())

    info = snapshot.get(ToolName.IMAGEMAGICK)
    assert info.available
    assert info.invocation_command == "convert"
    assert info.version_major == 6
    assert snapshot.imagemagick_subcommand("identify") == ["identify"]


def test_detect_tools_is_memoised_until_refresh(monkeypatch, runner_factory) -> None:
    runner = runner_factory(missing)
    monkeypatch.setattr(availability, "run_subprocess", runner)

    first = asyncio.run(detect_tools())
    calls_after_first = len(runner.calls)
    second = asyncio.run(detect_tools())

    assert second is first
    assert len(runner.calls) == calls_after_first

    third = asyncio.run(detect_tools(refresh=True))
    assert third is not first
    assert len(runner.calls) == 2 * calls_after_first


def test_snapshot_is_read_only(availability_factory) -> None:
    snapshot = availability_factory("imagemagick")

    with pytest.raises(TypeError):
        snapshot.tools["ghostscript"] = ToolInfo("ghostscript", True, "gs")  # type: ignore[index]
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.tools = {}  # type: ignore[misc]


def test_imagemagick_subcommand_for_version_seven(availability_factory) -> None:
    snapshot = availability_factory("imagemagick")
    assert snapshot.imagemagick_subcommand("compare") == ["magick", "compare"]
    assert availability_factory().imagemagick_subcommand("compare") is None


def test_unknown_tool_reports_unavailable() -> None:
    snapshot = ToolAvailability()
    assert not snapshot.is_available("pdftk")
    assert snapshot.get("pdftk") == ToolInfo(name="pdftk", available=False)
