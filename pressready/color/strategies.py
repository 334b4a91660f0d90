"""Colour transformation strategies and their default chains.

Each strategy wraps one external tool (or, for the last image fallback,
Pillow's LittleCMS bindings) behind :meth:`ColorTransformStrategy.attempt`.
Chains are ordered by observed fidelity for CMYK plus ICC work: the
dedicated colour-management utility, then the general image suite, then the
PDF rewriter.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Generic, TypeVar

from PIL import Image, ImageCms

from ..core.process import run_subprocess
from ..exceptions import ConfigurationMissingError, ToolInvocationError
from .availability import ToolAvailability, ToolName
from .commands import (
    build_ghostscript_cmyk_command,
    build_jpgicc_command,
    build_magick_basic_pdf_command,
    build_magick_icc_pdf_command,
    build_magick_image_command,
    build_magick_ycck_command,
)
from .models import ConversionRequest, ConversionResult, ImageConversionRequest, RenderingIntent
from .profiles import ProfileRegistry

_LOGGER = logging.getLogger("pressready.color.strategies")

RequestT = TypeVar("RequestT", ConversionRequest, ImageConversionRequest)


class ColorTransformStrategy(Generic[RequestT]):
    """One link in a fallback chain."""

    name: str = "strategy"
    tool: ToolName | None = None

    def __init__(self, availability: ToolAvailability, profiles: ProfileRegistry) -> None:
        self.availability = availability
        self.profiles = profiles

    def is_available(self) -> bool:
        return self.tool is None or self.availability.is_available(self.tool)

    @property
    def executable(self) -> str:
        command = self.availability.command(self.tool) if self.tool else None
        if command is None:
            raise ConfigurationMissingError(f"{self.name} requires {self.tool.value if self.tool else 'a tool'}")
        return command

    def output_path(self, request: RequestT) -> Path:  # pragma: no cover - overridden
        raise NotImplementedError

    async def transform(self, request: RequestT) -> bool:  # pragma: no cover - overridden
        """Run the tool; return whether ICC semantics were applied."""
        raise NotImplementedError

    async def attempt(self, request: RequestT) -> ConversionResult:
        if not self.is_available():
            return ConversionResult.failure(self.name, f"{self.tool.value if self.tool else self.name} is not installed")
        try:
            used_icc = await self.transform(request)
        except (ToolInvocationError, ConfigurationMissingError, OSError) as exc:
            _LOGGER.warning("Strategy %s failed: %s", self.name, exc)
            return ConversionResult.failure(self.name, str(exc))

        output = self.output_path(request)
        if not output.is_file() or output.stat().st_size == 0:
            _LOGGER.warning("Strategy %s exited cleanly but wrote no output to %s", self.name, output)
            return ConversionResult.failure(self.name, "tool reported success but produced no output")

        _LOGGER.info("Strategy %s succeeded (ICC applied: %s)", self.name, used_icc)
        return ConversionResult(success=True, used_cmyk=True, used_icc=used_icc, method=self.name)

    def _require_profile(self, name: str | None) -> Path:
        path = self.profiles.resolve(name) if name else None
        if path is None:
            raise ConfigurationMissingError(f"{self.name} needs ICC profile {name!r}")
        return path


class PdfStrategy(ColorTransformStrategy[ConversionRequest]):
    def output_path(self, request: ConversionRequest) -> Path:
        return request.destination_document_path


class ImageStrategy(ColorTransformStrategy[ImageConversionRequest]):
    def output_path(self, request: ImageConversionRequest) -> Path:
        return request.destination_path


# -- PDF chain ---------------------------------------------------------------


class ImageMagickICCStrategy(PdfStrategy):
    """Primary: explicit source/destination profile pair, perceptual, BPC."""

    name = "imagemagick-icc"
    tool = ToolName.IMAGEMAGICK

    async def transform(self, request: ConversionRequest) -> bool:
        destination_profile = self._require_profile(request.icc_profile_name)
        source_profile = (
            self.profiles.resolve(request.source_profile_name) if request.source_profile_name else None
        )
        command = build_magick_icc_pdf_command(
            self.executable,
            request.source_document_path,
            request.destination_document_path,
            destination_profile=destination_profile,
            source_profile=source_profile,
            intent=request.rendering_intent,
            quality=request.quality,
            dpi=request.target_dpi,
        )
        await run_subprocess(command)
        return True


class ImageMagickBasicStrategy(PdfStrategy):
    """Fallback A: destination profile only, or a plain perceptual CMYK cast."""

    name = "imagemagick-basic"
    tool = ToolName.IMAGEMAGICK

    async def transform(self, request: ConversionRequest) -> bool:
        destination_profile = self.profiles.resolve(request.icc_profile_name)
        command = build_magick_basic_pdf_command(
            self.executable,
            request.source_document_path,
            request.destination_document_path,
            destination_profile=destination_profile,
            intent=request.rendering_intent,
            quality=request.quality,
            dpi=request.target_dpi,
        )
        await run_subprocess(command)
        return destination_profile is not None


class GhostscriptCMYKStrategy(PdfStrategy):
    """Fallback B: device CMYK rewrite, never ICC."""

    name = "ghostscript-cmyk"
    tool = ToolName.GHOSTSCRIPT

    async def transform(self, request: ConversionRequest) -> bool:
        command = build_ghostscript_cmyk_command(
            self.executable,
            request.source_document_path,
            request.destination_document_path,
            quality=request.quality,
            dpi=request.target_dpi,
        )
        await run_subprocess(command)
        return False


# -- single image chain ------------------------------------------------------


class JpgiccEmbeddedStrategy(ImageStrategy):
    """jpgicc relying on the profile embedded in the JPEG."""

    name = "jpgicc-embedded"
    tool = ToolName.JPGICC

    async def transform(self, request: ImageConversionRequest) -> bool:
        command = build_jpgicc_command(
            request.source_path,
            request.destination_path,
            intent=request.rendering_intent,
            quality=100,
            executable=self.executable,
        )
        await run_subprocess(command)
        return True


class JpgiccProfileStrategy(ImageStrategy):
    """jpgicc with an explicit input/output profile pair."""

    name = "jpgicc-profiles"
    tool = ToolName.JPGICC
    intent: RenderingIntent | None = None

    async def transform(self, request: ImageConversionRequest) -> bool:
        command = build_jpgicc_command(
            request.source_path,
            request.destination_path,
            intent=self.intent or request.rendering_intent,
            quality=100,
            input_profile=self._require_profile(request.source_profile_name),
            output_profile=self._require_profile(request.target_profile_name),
            executable=self.executable,
        )
        await run_subprocess(command)
        return True


class JpgiccYCCKStrategy(JpgiccProfileStrategy):
    # Relative colorimetric holds up better than perceptual on YCCK sources.
    name = "jpgicc-ycck"
    intent = RenderingIntent.RELATIVE


class ImageMagickProfileStrategy(ImageStrategy):
    name = "imagemagick-profiles"
    tool = ToolName.IMAGEMAGICK

    async def transform(self, request: ImageConversionRequest) -> bool:
        command = build_magick_image_command(
            self.executable,
            request.source_path,
            request.destination_path,
            source_profile=self._require_profile(request.source_profile_name),
            target_profile=self._require_profile(request.target_profile_name),
            intent=request.rendering_intent,
            quality=request.quality,
        )
        await run_subprocess(command)
        return True


class ImageMagickYCCKStrategy(ImageStrategy):
    name = "imagemagick-ycck"
    tool = ToolName.IMAGEMAGICK

    async def transform(self, request: ImageConversionRequest) -> bool:
        command = build_magick_ycck_command(
            self.executable,
            request.source_path,
            request.destination_path,
            source_profile=self._require_profile(request.source_profile_name),
            target_profile=self._require_profile(request.target_profile_name),
            quality=request.quality,
        )
        await run_subprocess(command)
        return True


class PillowCMSStrategy(ImageStrategy):
    """In-process LittleCMS transform; a plain mode conversion without profiles."""

    name = "pillow-imagecms"

    async def transform(self, request: ImageConversionRequest) -> bool:
        source_profile = self.profiles.resolve(request.source_profile_name)
        target_profile = self.profiles.resolve(request.target_profile_name)
        return await asyncio.to_thread(self._convert, request, source_profile, target_profile)

    @staticmethod
    def _convert(
        request: ImageConversionRequest,
        source_profile: Path | None,
        target_profile: Path | None,
    ) -> bool:
        with Image.open(request.source_path) as image:
            image.load()
            used_icc = False
            if image.mode == "CMYK" and source_profile is not None and target_profile is not None:
                try:
                    converted = ImageCms.profileToProfile(
                        image,
                        str(source_profile),
                        str(target_profile),
                        renderingIntent=ImageCms.Intent(request.rendering_intent.lcms_code),
                        outputMode="RGB",
                        flags=ImageCms.Flags.BLACKPOINTCOMPENSATION,
                    )
                    used_icc = True
                except ImageCms.PyCMSError as exc:
                    _LOGGER.warning("LittleCMS transform failed, using plain conversion: %s", exc)
                    converted = image.convert("RGB")
            else:
                converted = image.convert("RGB")
            converted.save(request.destination_path, format="JPEG", quality=request.quality, subsampling=0)
        return used_icc


# -- chains ------------------------------------------------------------------


def default_pdf_chain(availability: ToolAvailability, profiles: ProfileRegistry) -> list[PdfStrategy]:
    return [
        ImageMagickICCStrategy(availability, profiles),
        ImageMagickBasicStrategy(availability, profiles),
        GhostscriptCMYKStrategy(availability, profiles),
    ]


def default_image_chain(availability: ToolAvailability, profiles: ProfileRegistry) -> list[ImageStrategy]:
    return [
        JpgiccEmbeddedStrategy(availability, profiles),
        JpgiccProfileStrategy(availability, profiles),
        ImageMagickProfileStrategy(availability, profiles),
        PillowCMSStrategy(availability, profiles),
    ]


def default_ycck_chain(availability: ToolAvailability, profiles: ProfileRegistry) -> list[ImageStrategy]:
    return [
        ImageMagickYCCKStrategy(availability, profiles),
        JpgiccYCCKStrategy(availability, profiles),
        PillowCMSStrategy(availability, profiles),
    ]


__all__ = [
    "ColorTransformStrategy",
    "PdfStrategy",
    "ImageStrategy",
    "ImageMagickICCStrategy",
    "ImageMagickBasicStrategy",
    "GhostscriptCMYKStrategy",
    "JpgiccEmbeddedStrategy",
    "JpgiccProfileStrategy",
    "JpgiccYCCKStrategy",
    "ImageMagickProfileStrategy",
    "ImageMagickYCCKStrategy",
    "PillowCMSStrategy",
    "default_pdf_chain",
    "default_image_chain",
    "default_ycck_chain",
]
