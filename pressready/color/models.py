"""Value objects exchanged by the conversion engine."""

from __future__ import annotations

import dataclasses
from enum import Enum
from pathlib import Path

from ..core.config import DEFAULT_CMYK_PROFILE, DEFAULT_RGB_PROFILE
from ..core.utils import resolve_path
from ..exceptions import InvalidInputError


class RenderingIntent(str, Enum):
    """ICC rendering intents with the spellings each tool expects."""

    PERCEPTUAL = "perceptual"
    RELATIVE = "relative"
    SATURATION = "saturation"
    ABSOLUTE = "absolute"

    @property
    def magick_name(self) -> str:
        return self.value.capitalize()

    @property
    def lcms_code(self) -> int:
        # LittleCMS numbering, shared by jpgicc ``-t`` and Pillow ``ImageCms``.
        return {"perceptual": 0, "relative": 1, "saturation": 2, "absolute": 3}[self.value]


def validate_dpi(dpi: object) -> int:
    """Return *dpi* if it is a positive integer; there is no default resolution."""

    if isinstance(dpi, bool) or not isinstance(dpi, int) or dpi <= 0:
        raise InvalidInputError(f"target_dpi must be a positive integer, got {dpi!r}")
    return dpi


def _check_quality(quality: object) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 100:
        raise InvalidInputError(f"quality must be an integer between 0 and 100, got {quality!r}")
    return quality


@dataclasses.dataclass(frozen=True)
class ConversionRequest:
    """A single PDF to CMYK conversion. ``target_dpi`` has no default."""

    source_document_path: Path
    destination_document_path: Path
    target_dpi: int
    icc_profile_name: str = DEFAULT_CMYK_PROFILE
    source_profile_name: str | None = DEFAULT_RGB_PROFILE
    rendering_intent: RenderingIntent = RenderingIntent.PERCEPTUAL
    quality: int = 95

    def __post_init__(self) -> None:
        validate_dpi(self.target_dpi)
        _check_quality(self.quality)
        object.__setattr__(self, "source_document_path", resolve_path(self.source_document_path))
        object.__setattr__(self, "destination_document_path", resolve_path(self.destination_document_path))
        object.__setattr__(self, "rendering_intent", RenderingIntent(self.rendering_intent))

    def with_destination(self, destination: Path) -> "ConversionRequest":
        return dataclasses.replace(self, destination_document_path=destination)


@dataclasses.dataclass(frozen=True)
class ImageConversionRequest:
    """A single bitmap conversion from CMYK (or YCCK) JPEG to an RGB working space."""

    source_path: Path
    destination_path: Path
    source_profile_name: str = DEFAULT_CMYK_PROFILE
    target_profile_name: str = DEFAULT_RGB_PROFILE
    rendering_intent: RenderingIntent = RenderingIntent.PERCEPTUAL
    quality: int = 98
    ycck: bool = False

    def __post_init__(self) -> None:
        _check_quality(self.quality)
        object.__setattr__(self, "rendering_intent", RenderingIntent(self.rendering_intent))

    def with_destination(self, destination: Path) -> "ImageConversionRequest":
        return dataclasses.replace(self, destination_path=destination)


@dataclasses.dataclass(frozen=True)
class ConversionResult:
    """Outcome of one strategy attempt, or of a whole chain.

    For a chain result ``attempts`` holds the failed attempts that preceded
    the returned one, in chain order.
    """

    success: bool
    used_cmyk: bool
    used_icc: bool
    method: str
    error: str | None = None
    attempts: tuple["ConversionResult", ...] = ()

    @classmethod
    def failure(cls, method: str, error: str) -> "ConversionResult":
        return cls(success=False, used_cmyk=False, used_icc=False, method=method, error=error)


@dataclasses.dataclass(frozen=True)
class JpegColorInfo:
    """Colour encoding facts read from a JPEG's metadata."""

    is_ycck: bool = False
    has_icc_profile: bool = False
    icc_profile_name: str | None = None
    color_mode: str | None = None
    color_space: str | None = None
    color_components: str | None = None


__all__ = [
    "RenderingIntent",
    "validate_dpi",
    "ConversionRequest",
    "ImageConversionRequest",
    "ConversionResult",
    "JpegColorInfo",
]
