"""Plugin reporting whether this host can produce ICC-managed CMYK output."""

from __future__ import annotations

from ..color.diagnostics import ReadinessReport, assess_readiness
from ..core.utils import get_logger
from .common.interfaces import BaseTool
from .common.pipeline import register_tool

LOGGER = get_logger("pressready.tools.doctor")


@register_tool("doctor")
class DoctorTool(BaseTool):
    async def run_async(self) -> ReadinessReport:
        context = self.context
        availability = await context.ensure_availability()
        profiles = context.profiles()
        LOGGER.debug("Checking profiles in %s", profiles.base_dir)
        engine = await context.ensure_engine() if context.config.get("trial", True) else None
        return await assess_readiness(
            profiles,
            availability,
            engine=engine,
            run_trial=engine is not None,
        )
