"""CMYK conversion engine: ordered fallback chains over the strategies."""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import Sequence

from PIL import Image

from ..core.config import DEFAULT_CMYK_PROFILE, DEFAULT_RGB_PROFILE, load_settings
from ..core.process import run_subprocess, scratch_files
from ..core.utils import ensure_parent_dir, resolve_path
from ..exceptions import InvalidInputError, ToolInvocationError
from .availability import ToolAvailability, ToolName, detect_tools
from .commands import build_exiftool_jpeg_command
from .models import (
    ConversionRequest,
    ConversionResult,
    ImageConversionRequest,
    JpegColorInfo,
    RenderingIntent,
)
from .profiles import ProfileRegistry
from .strategies import (
    ColorTransformStrategy,
    ImageStrategy,
    PdfStrategy,
    default_image_chain,
    default_pdf_chain,
    default_ycck_chain,
)

_LOGGER = logging.getLogger("pressready.color.engine")

ALL_METHODS_FAILED = "all methods failed"

# APP14 "Adobe" marker transform flag: 2 means YCCK.
_ADOBE_TRANSFORM_YCCK = 2


class CMYKConversionEngine:
    """Runs a request through an ordered strategy chain, stopping at the first success.

    The engine never raises for tool failures; a chain where every strategy
    fails yields a ``success=False`` result. Invalid requests raise
    :class:`InvalidInputError` before any tool is launched.
    """

    def __init__(
        self,
        availability: ToolAvailability,
        profiles: ProfileRegistry | None = None,
        *,
        pdf_chain: Sequence[PdfStrategy] | None = None,
        image_chain: Sequence[ImageStrategy] | None = None,
        ycck_chain: Sequence[ImageStrategy] | None = None,
        temp_dir: str | Path | None = None,
    ) -> None:
        self.availability = availability
        self.profiles = profiles if profiles is not None else ProfileRegistry()
        self.pdf_chain = list(pdf_chain) if pdf_chain is not None else default_pdf_chain(availability, self.profiles)
        self.image_chain = (
            list(image_chain) if image_chain is not None else default_image_chain(availability, self.profiles)
        )
        self.ycck_chain = (
            list(ycck_chain) if ycck_chain is not None else default_ycck_chain(availability, self.profiles)
        )
        self.temp_dir = Path(temp_dir) if temp_dir is not None else load_settings().temp_dir

    @classmethod
    async def create(
        cls,
        profiles: ProfileRegistry | None = None,
        *,
        refresh: bool = False,
        temp_dir: str | Path | None = None,
    ) -> "CMYKConversionEngine":
        """Build an engine from the process-wide tool snapshot."""

        availability = await detect_tools(refresh=refresh)
        return cls(availability, profiles, temp_dir=temp_dir)

    # -- PDF ---------------------------------------------------------------

    async def convert_pdf(
        self,
        source: str | Path,
        destination: str | Path,
        *,
        target_dpi: int | None,
        icc_profile: str = DEFAULT_CMYK_PROFILE,
        source_profile: str | None = DEFAULT_RGB_PROFILE,
        intent: RenderingIntent | str = RenderingIntent.PERCEPTUAL,
        quality: int = 95,
    ) -> ConversionResult:
        """Convert the PDF at *source* to CMYK at *destination*.

        ``target_dpi`` is mandatory: ``None``, zero or negative values raise
        :class:`InvalidInputError` before any external process is spawned.
        """

        request = ConversionRequest(
            source_document_path=Path(source),
            destination_document_path=Path(destination),
            target_dpi=target_dpi,  # type: ignore[arg-type]
            icc_profile_name=icc_profile,
            source_profile_name=source_profile,
            rendering_intent=RenderingIntent(intent),
            quality=quality,
        )
        return await self.convert(request)

    async def convert(self, request: ConversionRequest) -> ConversionResult:
        if not request.source_document_path.is_file():
            raise InvalidInputError(f"Source document not found: {request.source_document_path}")

        _LOGGER.info(
            "CMYK conversion of %s with profile %r at %s dpi (quality %s)",
            request.source_document_path.name,
            request.icc_profile_name,
            request.target_dpi,
            request.quality,
        )
        destination = request.destination_document_path
        suffix = destination.suffix or ".pdf"
        return await self._run_chain(
            self.pdf_chain,
            destination,
            prefix="cmyk",
            suffix=suffix,
            build=request.with_destination,
        )

    # -- single images ---------------------------------------------------

    async def convert_image(
        self,
        source: str | Path,
        destination: str | Path,
        *,
        ycck: bool | None = None,
        source_profile: str = DEFAULT_CMYK_PROFILE,
        target_profile: str = DEFAULT_RGB_PROFILE,
        intent: RenderingIntent | str = RenderingIntent.PERCEPTUAL,
        quality: int = 98,
    ) -> ConversionResult:
        """Decode a CMYK/YCCK JPEG to the RGB working space with ICC semantics.

        When *ycck* is ``None`` the encoding is detected with
        :meth:`inspect_jpeg_color`.
        """

        source_path = resolve_path(source)
        if not source_path.is_file():
            raise InvalidInputError(f"Source image not found: {source_path}")
        if ycck is None:
            ycck = (await self.inspect_jpeg_color(source_path)).is_ycck

        request = ImageConversionRequest(
            source_path=source_path,
            destination_path=resolve_path(destination),
            source_profile_name=source_profile,
            target_profile_name=target_profile,
            rendering_intent=RenderingIntent(intent),
            quality=quality,
            ycck=ycck,
        )
        chain = self.ycck_chain if ycck else self.image_chain
        _LOGGER.info("Converting %s image %s", "YCCK" if ycck else "CMYK", source_path.name)
        return await self._run_chain(
            chain,
            request.destination_path,
            prefix="srgb",
            suffix=".jpg",
            build=request.with_destination,
        )

    async def convert_image_bytes(self, data: bytes, *, ycck: bool | None = None) -> tuple[bytes | None, ConversionResult]:
        """Byte-level wrapper around :meth:`convert_image` using scratch files.

        Returns ``(None, result)`` when every strategy failed.
        """

        with scratch_files(self.temp_dir, "cmyk", ".jpg", "input", "output") as (input_path, output_path):
            input_path.write_bytes(data)
            result = await self.convert_image(input_path, output_path, ycck=ycck)
            converted = output_path.read_bytes() if result.success else None
        return converted, result

    async def inspect_jpeg_color(self, path: str | Path) -> JpegColorInfo:
        """Read colour encoding facts, preferring exiftool over Pillow's APP14 parsing."""

        source = resolve_path(path)
        executable = self.availability.command(ToolName.EXIFTOOL)
        if executable:
            try:
                result = await run_subprocess(build_exiftool_jpeg_command(source, executable))
            except ToolInvocationError as exc:
                _LOGGER.warning("exiftool could not read %s: %s", source.name, exc)
            else:
                return parse_exiftool_color_info(result.stdout)
        return _pillow_color_info(source)

    # -- chain driver ----------------------------------------------------

    async def _run_chain(
        self,
        chain: Sequence[ColorTransformStrategy],
        destination: Path,
        *,
        prefix: str,
        suffix: str,
        build,
    ) -> ConversionResult:
        failures: list[ConversionResult] = []
        for strategy in chain:
            with scratch_files(self.temp_dir, prefix, suffix, "output") as (scratch,):
                result = await strategy.attempt(build(scratch))
                if result.success:
                    ensure_parent_dir(destination)
                    shutil.move(str(scratch), str(destination))
                    _LOGGER.info("Converted with %s -> %s", result.method, destination)
                    return ConversionResult(
                        success=True,
                        used_cmyk=result.used_cmyk,
                        used_icc=result.used_icc,
                        method=result.method,
                        attempts=tuple(failures),
                    )
            _LOGGER.debug("Strategy %s failed, trying next: %s", result.method, result.error)
            failures.append(result)

        detail = "; ".join(f"{failure.method}: {failure.error}" for failure in failures)
        _LOGGER.error("Every conversion strategy failed (%s)", detail or "empty chain")
        return ConversionResult(
            success=False,
            used_cmyk=False,
            used_icc=False,
            method="none",
            error=f"{ALL_METHODS_FAILED} ({detail})" if detail else ALL_METHODS_FAILED,
            attempts=tuple(failures),
        )


_EXIF_FIELD = re.compile(r"^\s*([^:]+?)\s*:\s*(.*?)\s*$")


def parse_exiftool_fields(output: str) -> dict[str, str]:
    """Parse ``Tag Name : value`` lines into a lower-cased tag mapping."""

    fields: dict[str, str] = {}
    for line in output.splitlines():
        match = _EXIF_FIELD.match(line)
        if match:
            fields[match.group(1).lower()] = match.group(2)
    return fields


def parse_exiftool_color_info(output: str) -> JpegColorInfo:
    fields = parse_exiftool_fields(output)
    lowered = output.lower()
    return JpegColorInfo(
        is_ycck="color transform" in lowered and "ycck" in lowered,
        has_icc_profile="icc profile name" in lowered or "profile description" in lowered,
        icc_profile_name=fields.get("icc profile name") or fields.get("profile description"),
        color_mode=fields.get("color mode"),
        color_space=fields.get("color space data") or fields.get("color space"),
        color_components=fields.get("color components"),
    )


def _pillow_color_info(path: Path) -> JpegColorInfo:
    try:
        with Image.open(path) as image:
            transform = image.info.get("adobe_transform")
            icc = image.info.get("icc_profile")
            return JpegColorInfo(
                is_ycck=image.mode == "CMYK" and transform == _ADOBE_TRANSFORM_YCCK,
                has_icc_profile=bool(icc),
                color_mode=image.mode,
                color_space=image.mode,
                color_components=str(len(image.getbands())),
            )
    except OSError as exc:
        _LOGGER.warning("Unable to inspect %s: %s", path, exc)
        return JpegColorInfo()


__all__ = [
    "ALL_METHODS_FAILED",
    "CMYKConversionEngine",
    "parse_exiftool_color_info",
    "parse_exiftool_fields",
]
