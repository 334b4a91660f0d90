"""Export orchestration from design SVGs to validated CMYK PDFs."""

from __future__ import annotations

from .pipeline import ExportPipeline, ExportRegion, ExportReport, PreprocessedImage, RegionResult, new_task_id
from .renderer import InkscapeRenderer, Renderer

__all__ = [
    "ExportPipeline",
    "ExportRegion",
    "ExportReport",
    "PreprocessedImage",
    "RegionResult",
    "new_task_id",
    "InkscapeRenderer",
    "Renderer",
]
