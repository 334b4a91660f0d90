"""Plugins exposing the CMYK conversion engine through the registry."""

from __future__ import annotations

from ..color.models import ConversionResult
from ..core.config import DEFAULT_CMYK_PROFILE
from ..core.utils import get_logger
from .common.interfaces import BaseTool
from .common.pipeline import register_tool

LOGGER = get_logger("pressready.tools.conversion")


@register_tool("convert")
class ConvertTool(BaseTool):
    """PDF to CMYK through the PDF strategy chain."""

    async def run_async(self) -> ConversionResult:
        context = self.context
        source = context.require_input("convert")
        destination = context.require_output("convert")
        config = context.config
        engine = await context.ensure_engine()
        LOGGER.debug("Converting %s to %s at %s dpi", source, destination, config.get("dpi"))
        return await engine.convert_pdf(
            source,
            destination,
            target_dpi=config.get("dpi"),
            icc_profile=config.get("profile") or DEFAULT_CMYK_PROFILE,
            intent=config.get("intent", "perceptual"),
            quality=config.get("quality", 95),
        )


@register_tool("convert-image")
class ConvertImageTool(BaseTool):
    """CMYK or YCCK JPEG to sRGB through the image strategy chains."""

    async def run_async(self) -> ConversionResult:
        context = self.context
        source = context.require_input("convert-image")
        destination = context.require_output("convert-image")
        engine = await context.ensure_engine()
        LOGGER.debug("Converting image %s to %s", source, destination)
        return await engine.convert_image(
            source,
            destination,
            ycck=context.config.get("ycck"),
            quality=context.config.get("quality", 98),
        )
