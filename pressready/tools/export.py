"""Plugin running the full SVG to validated CMYK PDF export."""

from __future__ import annotations

from ..export.pipeline import ExportPipeline, ExportRegion, ExportReport
from ..core.config import DEFAULT_CMYK_PROFILE
from ..core.utils import get_logger
from .common.interfaces import BaseTool
from .common.pipeline import register_tool

LOGGER = get_logger("pressready.tools.export")


@register_tool("export")
class ExportTool(BaseTool):
    async def run_async(self) -> ExportReport:
        context = self.context
        config = context.config
        engine = await context.ensure_engine()
        pipeline = ExportPipeline(
            engine,
            context.resources.get("renderer"),
            export_dir=config.get("export_dir") or context.settings.export_dir,
            icc_profile=config.get("profile") or DEFAULT_CMYK_PROFILE,
            check_consistency=config.get("consistency", True),
        )
        images = config.get("images") or ()
        regions = [ExportRegion(region_id, path) for region_id, path in config.get("regions") or ()]
        if regions:
            LOGGER.debug("Exporting %s regions", len(regions))
            return await pipeline.export_regions(
                regions,
                target_dpi=config.get("dpi"),
                images=images,
                task_id=config.get("task_id"),
            )
        source = context.require_input("export")
        LOGGER.debug("Exporting single design %s", source)
        return await pipeline.export_single(
            source,
            target_dpi=config.get("dpi"),
            images=images,
            task_id=config.get("task_id"),
        )
