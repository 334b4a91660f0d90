"""Plugin running colour-space and vector-integrity validation on a PDF."""

from __future__ import annotations

import dataclasses

from ..color.validators import DEFAULT_PROBES, WeightedConsensus, validate_color_space
from ..color.vector import VectorIntegrityReport, validate_vector_integrity
from ..core.utils import get_logger
from .common.interfaces import BaseTool
from .common.pipeline import register_tool

LOGGER = get_logger("pressready.tools.validate")


@dataclasses.dataclass(frozen=True)
class ValidationOutcome:
    path: str
    color: WeightedConsensus
    vector: VectorIntegrityReport | None

    @property
    def success(self) -> bool:
        return self.color.success and self.color.color_space == "CMYK"


@register_tool("validate")
class ValidateTool(BaseTool):
    async def run_async(self) -> ValidationOutcome:
        context = self.context
        document = context.require_input("validate")
        availability = await context.ensure_availability()
        probes = tuple(context.config.get("probes") or DEFAULT_PROBES)
        LOGGER.debug("Validating %s with probes %s", document, ", ".join(probes))
        color = await validate_color_space(document, availability, probes=probes)
        vector = None
        if context.config.get("vector", True):
            vector = await validate_vector_integrity(document)
        return ValidationOutcome(path=str(document), color=color, vector=vector)
