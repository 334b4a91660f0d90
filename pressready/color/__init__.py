"""Colour management: tool detection, ICC profiles, CMYK conversion and validation."""

from __future__ import annotations

from .availability import ToolAvailability, ToolInfo, ToolName, clear_cache, detect_tools, probe_tools
from .consistency import ConsistencyReport, check_color_consistency
from .diagnostics import ReadinessReport, assess_readiness
from .engine import ALL_METHODS_FAILED, CMYKConversionEngine
from .models import (
    ConversionRequest,
    ConversionResult,
    ImageConversionRequest,
    JpegColorInfo,
    RenderingIntent,
    validate_dpi,
)
from .preprocess import PreprocessOptions, compute_target_size, pixel_ceiling, preprocess_image
from .profiles import ICCProfile, ProfileRegistry
from .strategies import ColorTransformStrategy
from .validators import ColorSpaceValidation, WeightedConsensus, combine_validations, validate_color_space
from .vector import VectorIntegrityReport, validate_vector_integrity

__all__ = [
    "ToolAvailability",
    "ToolInfo",
    "ToolName",
    "clear_cache",
    "detect_tools",
    "probe_tools",
    "ConsistencyReport",
    "check_color_consistency",
    "ReadinessReport",
    "assess_readiness",
    "ALL_METHODS_FAILED",
    "CMYKConversionEngine",
    "ConversionRequest",
    "ConversionResult",
    "ImageConversionRequest",
    "JpegColorInfo",
    "RenderingIntent",
    "validate_dpi",
    "PreprocessOptions",
    "compute_target_size",
    "pixel_ceiling",
    "preprocess_image",
    "ICCProfile",
    "ProfileRegistry",
    "ColorTransformStrategy",
    "ColorSpaceValidation",
    "WeightedConsensus",
    "combine_validations",
    "validate_color_space",
    "VectorIntegrityReport",
    "validate_vector_integrity",
]
