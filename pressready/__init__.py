"""Print-ready CMYK export pipeline.

Renders SVG designs to PDF, converts them to CMYK with ICC profiles through
a chain of external colour tools, and validates the result.
"""

from __future__ import annotations

from .color import (
    CMYKConversionEngine,
    ConversionRequest,
    ConversionResult,
    PreprocessOptions,
    ProfileRegistry,
    RenderingIntent,
    ToolAvailability,
    assess_readiness,
    check_color_consistency,
    combine_validations,
    detect_tools,
    preprocess_image,
    validate_color_space,
    validate_vector_integrity,
)
from .exceptions import (
    ConfigurationMissingError,
    InvalidInputError,
    PressReadyError,
    RenderError,
    ToolInvocationError,
    ValidationInconclusiveError,
)
from .export import ExportPipeline, ExportRegion, ExportReport, InkscapeRenderer

__version__ = "0.1.0"

__all__ = [
    "CMYKConversionEngine",
    "ConversionRequest",
    "ConversionResult",
    "PreprocessOptions",
    "ProfileRegistry",
    "RenderingIntent",
    "ToolAvailability",
    "assess_readiness",
    "check_color_consistency",
    "combine_validations",
    "detect_tools",
    "preprocess_image",
    "validate_color_space",
    "validate_vector_integrity",
    "ConfigurationMissingError",
    "InvalidInputError",
    "PressReadyError",
    "RenderError",
    "ToolInvocationError",
    "ValidationInconclusiveError",
    "ExportPipeline",
    "ExportRegion",
    "ExportReport",
    "InkscapeRenderer",
    "__version__",
]
