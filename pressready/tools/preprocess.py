"""Plugin normalising a single uploaded bitmap."""

from __future__ import annotations

import dataclasses

from ..color.preprocess import PreprocessOptions, preprocess_image
from ..core.utils import ensure_parent_dir, get_logger
from .common.interfaces import BaseTool
from .common.pipeline import register_tool

LOGGER = get_logger("pressready.tools.preprocess")


@dataclasses.dataclass(frozen=True)
class PreprocessOutcome:
    input_path: str
    output_path: str
    original_bytes: int
    processed_bytes: int
    preserve_for_print: bool

    @property
    def success(self) -> bool:
        return self.processed_bytes > 0


@register_tool("preprocess")
class PreprocessTool(BaseTool):
    async def run_async(self) -> PreprocessOutcome:
        context = self.context
        source = context.require_input("preprocess")
        destination = context.output_path or source
        options = PreprocessOptions(
            max_pixels=context.config.get("max_pixels", PreprocessOptions.max_pixels),
            quality=context.config.get("quality", PreprocessOptions.quality),
            preserve_for_print=bool(context.config.get("print")),
        )
        engine = await context.ensure_engine()
        data = source.read_bytes()
        processed = await preprocess_image(data, options, engine=engine)
        ensure_parent_dir(destination)
        destination.write_bytes(processed)
        LOGGER.debug("Pre-processed %s (%s -> %s bytes)", source, len(data), len(processed))
        return PreprocessOutcome(
            input_path=str(source),
            output_path=str(destination),
            original_bytes=len(data),
            processed_bytes=len(processed),
            preserve_for_print=options.preserve_for_print,
        )
