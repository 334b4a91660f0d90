from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Iterable
import sys

import pytest
from PIL import Image
from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pressready.color.availability import ToolAvailability, ToolInfo  # noqa: E402
from pressready.color.profiles import ProfileRegistry  # noqa: E402
from pressready.core.process import CommandResult  # noqa: E402
from pressready.exceptions import ToolInvocationError  # noqa: E402

_DEFAULT_COMMANDS = {
    "jpgicc": ("jpgicc", None),
    "imagemagick": ("magick", 7),
    "ghostscript": ("gs", None),
    "exiftool": ("exiftool", None),
    "inkscape": ("inkscape", None),
}


class FakeRunner:
    """Async stand-in for ``run_subprocess`` that records every command.

    ``handler`` receives the argv tuple and returns a :class:`CommandResult`
    (or raises :class:`ToolInvocationError` to simulate a missing binary).
    """

    def __init__(self, handler: Callable[[tuple[str, ...]], CommandResult] | None = None) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.handler = handler or (lambda argv: ok(argv))

    async def __call__(self, command, *, check: bool = True) -> CommandResult:
        argv = tuple(str(part) for part in command)
        self.calls.append(argv)
        result = self.handler(argv)
        if check and not result.ok:
            raise ToolInvocationError(
                f"{argv[0]} exited with code {result.returncode}",
                command=argv,
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result

    def executables(self) -> list[str]:
        return [argv[0] for argv in self.calls]


def ok(argv: Iterable[str], stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(tuple(argv), 0, stdout, stderr)


def failed(argv: Iterable[str], returncode: int = 1, stderr: str = "boom") -> CommandResult:
    return CommandResult(tuple(argv), returncode, "", stderr)


def missing(argv: Iterable[str]) -> CommandResult:
    argv = tuple(argv)
    raise ToolInvocationError(f"Failed to execute {argv[0]}: not found", command=argv)


def write_output(path: str | Path, payload: bytes = b"%PDF-1.4 converted") -> None:
    Path(path).write_bytes(payload)


@pytest.fixture()
def runner_factory() -> Callable[..., FakeRunner]:
    return FakeRunner


@pytest.fixture()
def availability_factory() -> Callable[..., ToolAvailability]:
    def _create(*names: str, imagemagick_major: int = 7) -> ToolAvailability:
        infos = []
        for name, (command, major) in _DEFAULT_COMMANDS.items():
            if name == "imagemagick":
                command = "magick" if imagemagick_major >= 7 else "convert"
                major = imagemagick_major
            infos.append(ToolInfo(name=name, available=name in names, invocation_command=command, version_major=major))
        return ToolAvailability.from_infos(infos)

    return _create


@pytest.fixture()
def icc_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "icc-profiles"
    directory.mkdir()
    (directory / "JapanColor2001Coated.icc").write_bytes(b"not a real profile")
    (directory / "sRGB.icc").write_bytes(b"not a real profile")
    return directory


@pytest.fixture()
def profiles(icc_dir: Path) -> ProfileRegistry:
    return ProfileRegistry(icc_dir)


@pytest.fixture()
def empty_profiles(tmp_path: Path) -> ProfileRegistry:
    directory = tmp_path / "no-profiles"
    directory.mkdir()
    return ProfileRegistry(directory)


@pytest.fixture()
def sample_pdf(tmp_path: Path) -> Path:
    pdf_path = tmp_path / "sample.pdf"
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    writer.add_metadata({"/Producer": "pressready-tests", "/Title": "Sample"})
    with pdf_path.open("wb") as stream:
        writer.write(stream)
    return pdf_path


@pytest.fixture()
def image_bytes() -> Callable[..., bytes]:
    def _create(mode: str = "RGB", size: tuple[int, int] = (40, 20), fmt: str = "JPEG", **save_options) -> bytes:
        color = (10, 20, 30, 40) if mode == "CMYK" else (200, 30, 30)
        image = Image.new(mode, size, color)
        buffer = io.BytesIO()
        image.save(buffer, format=fmt, **save_options)
        return buffer.getvalue()

    return _create


@pytest.fixture()
def cmyk_jpeg(tmp_path: Path, image_bytes) -> Path:
    path = tmp_path / "cmyk.jpg"
    path.write_bytes(image_bytes("CMYK"))
    return path
