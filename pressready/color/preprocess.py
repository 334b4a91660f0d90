"""Normalisation of uploaded bitmaps before they are embedded in a design."""

from __future__ import annotations

import asyncio
import dataclasses
import io
import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from PIL import Image

from ..core.config import DEFAULT_IMAGE_QUALITY, DEFAULT_MAX_PIXELS, PRINT_PIXEL_MULTIPLIER
from ..exceptions import InvalidInputError

if TYPE_CHECKING:  # pragma: no cover
    from .engine import CMYKConversionEngine

_LOGGER = logging.getLogger("pressready.color.preprocess")

_EXIF_ORIENTATION_TAG = 0x0112
_DECODE_LIMIT_LOCK = threading.Lock()

# EXIF orientation -> clockwise rotation. Anything else is left alone.
_ORIENTATION_TRANSPOSE = {
    3: Image.Transpose.ROTATE_180,
    6: Image.Transpose.ROTATE_270,  # 90 degrees clockwise
    8: Image.Transpose.ROTATE_90,  # 90 degrees counter-clockwise
}


@dataclasses.dataclass(frozen=True)
class PreprocessOptions:
    """Recognised pre-processing options."""

    max_pixels: int = DEFAULT_MAX_PIXELS
    target_color_space: str = "srgb"
    quality: int = DEFAULT_IMAGE_QUALITY
    preserve_for_print: bool = False

    def __post_init__(self) -> None:
        if self.max_pixels <= 0:
            raise InvalidInputError(f"max_pixels must be positive, got {self.max_pixels}")
        if not 1 <= self.quality <= 100:
            raise InvalidInputError(f"quality must be between 1 and 100, got {self.quality}")
        if self.target_color_space.lower() != "srgb":
            raise InvalidInputError(f"Unsupported target colour space: {self.target_color_space}")


def pixel_ceiling(options: PreprocessOptions) -> int:
    """Largest allowed edge; print output gets an order of magnitude more room."""

    if options.preserve_for_print:
        return options.max_pixels * PRINT_PIXEL_MULTIPLIER
    return options.max_pixels


def compute_target_size(width: int, height: int, options: PreprocessOptions) -> tuple[int, int]:
    """Fit ``width x height`` inside the square ceiling box, keeping the aspect ratio."""

    ceiling = pixel_ceiling(options)
    if width <= ceiling and height <= ceiling:
        return width, height
    scale = min(ceiling / width, ceiling / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def apply_orientation(image: Image.Image, orientation: int | None) -> Image.Image:
    transpose = _ORIENTATION_TRANSPOSE.get(orientation or 1)
    if transpose is None:
        return image
    _LOGGER.debug("Applying EXIF orientation %s", orientation)
    return image.transpose(transpose)


def _encode_options(options: PreprocessOptions) -> dict[str, object]:
    if options.preserve_for_print:
        # Maximum fidelity: no chroma subsampling, baseline encoding.
        return {"quality": options.quality, "subsampling": 0, "progressive": False, "optimize": True}
    return {"quality": options.quality}


async def preprocess_image(
    data: bytes,
    options: PreprocessOptions | None = None,
    *,
    engine: "CMYKConversionEngine | None" = None,
) -> bytes:
    """Return a re-encoded JPEG of *data*, or *data* unchanged on any failure.

    CMYK JPEGs are only decoded through the engine's image chain; without an
    engine, or when the chain fails, the original bytes are kept because a
    generic mode cast would misread inverted or YCCK channels.
    """

    options = options or PreprocessOptions()
    try:
        return await _preprocess(data, options, engine)
    except Exception as exc:  # pre-processing never blocks the pipeline
        _LOGGER.warning("Image pre-processing failed, keeping original bytes: %s", exc)
        return data


@contextmanager
def _unbounded_decode() -> Iterator[None]:
    # Oversized uploads must decode so that they can be downscaled.
    with _DECODE_LIMIT_LOCK:
        previous = Image.MAX_IMAGE_PIXELS
        Image.MAX_IMAGE_PIXELS = None
        try:
            yield
        finally:
            Image.MAX_IMAGE_PIXELS = previous


def _inspect(data: bytes) -> tuple[str | None, str, int | None, tuple[int, int]]:
    with _unbounded_decode(), Image.open(io.BytesIO(data)) as probe:
        return probe.format, probe.mode, probe.getexif().get(_EXIF_ORIENTATION_TAG), probe.size


def _normalise(payload: bytes, orientation: int | None, options: PreprocessOptions) -> bytes:
    with _unbounded_decode(), Image.open(io.BytesIO(payload)) as source:
        image = source.convert("RGB") if source.mode not in ("RGB", "L") else source.copy()

    target = compute_target_size(*image.size, options)
    if target != image.size:
        resample = Image.Resampling.LANCZOS if options.preserve_for_print else Image.Resampling.BICUBIC
        _LOGGER.info("Downscaling %sx%s to %sx%s", image.width, image.height, *target)
        image = image.resize(target, resample)

    image = apply_orientation(image, orientation)

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", **_encode_options(options))
    return buffer.getvalue()


async def _preprocess(data: bytes, options: PreprocessOptions, engine: "CMYKConversionEngine | None") -> bytes:
    image_format, mode, orientation, (width, height) = await asyncio.to_thread(_inspect, data)
    _LOGGER.info("Pre-processing %sx%s %s image (mode %s)", width, height, image_format, mode)

    payload = data
    if image_format == "JPEG" and mode == "CMYK":
        if engine is None:
            _LOGGER.warning("No conversion engine for CMYK image; keeping original bytes")
            return data
        converted, result = await engine.convert_image_bytes(data)
        if converted is None:
            _LOGGER.warning("CMYK image conversion failed, keeping original bytes: %s", result.error)
            return data
        _LOGGER.info("CMYK image decoded via %s", result.method)
        payload = converted

    return await asyncio.to_thread(_normalise, payload, orientation, options)


__all__ = [
    "PreprocessOptions",
    "apply_orientation",
    "compute_target_size",
    "pixel_ceiling",
    "preprocess_image",
]
