"""Vector renderers turning a design SVG into a PDF."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from ..color.availability import ToolAvailability, ToolName
from ..core.process import run_subprocess
from ..core.utils import ensure_parent_dir, resolve_path
from ..exceptions import RenderError, ToolInvocationError

_LOGGER = logging.getLogger("pressready.export.renderer")

PDF_VERSION = "1.4"


class Renderer(Protocol):
    async def render(self, source: Path, output: Path, *, dpi: int) -> None:
        """Render *source* to a PDF at *output* or raise :class:`RenderError`."""


def build_inkscape_command(
    executable: str,
    source: Path,
    output: Path,
    *,
    dpi: int,
    pdf_version: str = PDF_VERSION,
) -> list[str]:
    return [
        executable,
        str(source),
        "--export-type=pdf",
        f"--export-filename={output}",
        "--export-area-drawing",
        f"--export-dpi={dpi}",
        f"--export-pdf-version={pdf_version}",
    ]


class InkscapeRenderer:
    """Renders the drawing area of an SVG with Inkscape 1.x."""

    def __init__(self, availability: ToolAvailability | None = None, *, pdf_version: str = PDF_VERSION) -> None:
        command = availability.command(ToolName.INKSCAPE) if availability is not None else None
        self.executable = command or "inkscape"
        self.pdf_version = pdf_version

    async def render(self, source: Path, output: Path, *, dpi: int) -> None:
        source = resolve_path(source)
        output = resolve_path(output)
        if not source.is_file():
            raise RenderError(f"SVG source not found: {source}")
        ensure_parent_dir(output)
        command = build_inkscape_command(self.executable, source, output, dpi=dpi, pdf_version=self.pdf_version)
        try:
            await run_subprocess(command)
        except ToolInvocationError as exc:
            raise RenderError(f"Inkscape failed to render {source.name}: {exc}") from exc
        if not output.is_file() or output.stat().st_size == 0:
            raise RenderError(f"Inkscape produced no PDF for {source.name}")
        _LOGGER.info("Rendered %s -> %s at %s dpi", source.name, output.name, dpi)


__all__ = ["InkscapeRenderer", "Renderer", "build_inkscape_command", "PDF_VERSION"]
