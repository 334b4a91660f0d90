"""Checks that a converted PDF kept its vector structure."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import re
from pathlib import Path
from typing import Any

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from ..core.config import SUSPICIOUS_SIZE_KB, VECTOR_FRIENDLY_IMAGE_LIMIT
from ..core.process import run_subprocess
from ..core.utils import resolve_path
from ..exceptions import ToolInvocationError

_LOGGER = logging.getLogger("pressready.color.vector")

# Path construction and text object operators in a content stream.
_DRAWING_OPERATORS = re.compile(rb"(?<![A-Za-z])(?:re|m|l|c|v|y|BT)(?![A-Za-z*'\"])")


@dataclasses.dataclass(frozen=True)
class VectorIntegrityReport:
    is_vector: bool
    has_text: bool
    has_vector_graphics: bool
    has_embedded_images: bool
    image_count: int
    file_size_kb: int
    is_suspiciously_large: bool
    font_count: int = 0
    details: dict[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass
class _Inventory:
    """What pypdf can see without any external tool."""

    font_count: int = 0
    image_count: int = 0
    has_drawing_operators: bool = False


def pypdf_inventory(path: Path) -> _Inventory:
    inventory = _Inventory()
    fonts: set[str] = set()
    reader = PdfReader(str(path))
    for page in reader.pages:
        resources = page.get("/Resources")
        resources = resources.get_object() if resources is not None else {}
        font_dict = resources.get("/Font")
        if font_dict is not None:
            fonts.update(str(name) for name in font_dict.get_object().keys())
        xobjects = resources.get("/XObject")
        if xobjects is not None:
            for reference in xobjects.get_object().values():
                if reference.get_object().get("/Subtype") == "/Image":
                    inventory.image_count += 1
        contents = page.get_contents()
        if contents is not None and _DRAWING_OPERATORS.search(contents.get_data()):
            inventory.has_drawing_operators = True
    inventory.font_count = len(fonts)
    return inventory


class _VectorProbe:
    """Collects findings from the poppler/mutool probes, falling back to pypdf."""

    def __init__(self, path: Path, *, use_pypdf_fallback: bool = True) -> None:
        self.path = path
        self.use_pypdf_fallback = use_pypdf_fallback
        self._inventory: _Inventory | None = None

    async def inventory(self) -> _Inventory | None:
        if not self.use_pypdf_fallback:
            return None
        if self._inventory is None:
            try:
                self._inventory = await asyncio.to_thread(pypdf_inventory, self.path)
            except (PyPdfError, OSError, ValueError) as exc:
                _LOGGER.warning("pypdf could not inspect %s: %s", self.path.name, exc)
                self.use_pypdf_fallback = False
                return None
        return self._inventory

    async def fonts(self) -> dict[str, Any]:
        try:
            result = await run_subprocess(["pdffonts", str(self.path)])
        except ToolInvocationError as exc:
            _LOGGER.debug("pdffonts unavailable: %s", exc)
            inventory = await self.inventory()
            if inventory is None:
                return {"has_text": False}
            return {"has_text": inventory.font_count > 0, "font_count": inventory.font_count, "font_source": "pypdf"}

        output = result.stdout
        font_count = max(0, len([line for line in output.splitlines() if line.strip()]) - 2)
        has_fonts = "yes" in output or "Type" in output
        return {"has_text": has_fonts and font_count > 0, "font_count": font_count, "font_details": output}

    async def info(self) -> dict[str, Any]:
        try:
            result = await run_subprocess(["pdfinfo", str(self.path)])
        except ToolInvocationError as exc:
            _LOGGER.debug("pdfinfo unavailable: %s", exc)
            return {}
        return {"pdf_info": result.stdout}

    async def images(self) -> dict[str, Any]:
        try:
            result = await run_subprocess(["pdfimages", "-list", str(self.path)])
        except ToolInvocationError as exc:
            _LOGGER.debug("pdfimages unavailable: %s", exc)
            inventory = await self.inventory()
            if inventory is None:
                return {"has_embedded_images": False, "image_count": 0}
            image_count = inventory.image_count
            source = "pypdf"
        else:
            lines = [line for line in result.stdout.splitlines() if line.strip()]
            # Two header lines precede the table rows.
            image_count = max(0, len(lines) - 2)
            source = "pdfimages"
        return {
            "has_embedded_images": image_count > 0,
            "image_count": image_count,
            "is_vector_friendly": image_count < VECTOR_FRIENDLY_IMAGE_LIMIT,
            "image_source": source,
        }

    async def structure(self) -> dict[str, Any]:
        try:
            result = await run_subprocess(["mutool", "info", str(self.path)])
        except ToolInvocationError as exc:
            _LOGGER.debug("mutool unavailable: %s", exc)
            inventory = await self.inventory()
            if inventory is None:
                return {"has_vector_content": False}
            return {"has_vector_content": inventory.has_drawing_operators, "structure_source": "pypdf"}

        output = result.stdout.lower()
        # A page wrapped whole in a form xobject is usually a rasterised page.
        has_vector_content = (
            "pages:" in output
            and "form xobject" not in output
            and any(cue in output for cue in ("path", "text", "font"))
        )
        return {"has_vector_content": has_vector_content, "pdf_structure": output[:300]}

    def size(self) -> dict[str, Any]:
        try:
            size_kb = round(self.path.stat().st_size / 1024)
        except OSError as exc:
            _LOGGER.warning("Unable to stat %s: %s", self.path, exc)
            return {"file_size_kb": 0}
        return {"file_size_kb": size_kb, "is_suspiciously_large": size_kb > SUSPICIOUS_SIZE_KB}


async def validate_vector_integrity(path: str | Path, *, use_pypdf_fallback: bool = True) -> VectorIntegrityReport:
    """Report whether *path* still carries text, paths or only a few images.

    A large file is flagged but never makes the document non-vector.
    """

    document = resolve_path(path)
    probe = _VectorProbe(document, use_pypdf_fallback=use_pypdf_fallback)
    findings: dict[str, Any] = {}
    findings.update(await probe.fonts())
    findings.update(await probe.info())
    findings.update(await probe.images())
    findings.update(await probe.structure())
    findings.update(probe.size())

    has_text = bool(findings.get("has_text"))
    has_vector_graphics = bool(findings.get("has_vector_content"))
    has_images = bool(findings.get("has_embedded_images"))
    is_vector = has_text or has_vector_graphics or (has_images and bool(findings.get("is_vector_friendly")))

    report = VectorIntegrityReport(
        is_vector=is_vector,
        has_text=has_text,
        has_vector_graphics=has_vector_graphics,
        has_embedded_images=has_images,
        image_count=int(findings.get("image_count", 0)),
        file_size_kb=int(findings.get("file_size_kb", 0)),
        is_suspiciously_large=bool(findings.get("is_suspiciously_large")),
        font_count=int(findings.get("font_count", 0)),
        details=findings,
    )
    if report.is_suspiciously_large:
        _LOGGER.warning("%s is %s KB, larger than expected for a vector PDF", document.name, report.file_size_kb)
    _LOGGER.info(
        "Vector integrity for %s: vector=%s text=%s graphics=%s images=%s",
        document.name,
        report.is_vector,
        report.has_text,
        report.has_vector_graphics,
        report.image_count,
    )
    return report


__all__ = ["VectorIntegrityReport", "pypdf_inventory", "validate_vector_integrity"]
