"""Runtime settings and tuned constants for pressready."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

# Consensus weighting for colour-space probes.
METADATA_PROBE_WEIGHT = 2.0
DEFAULT_PROBE_WEIGHT = 1.0
UNDEFINED_CONFIDENCE = 0.5

# Metadata probe: weak indicators needed for the 0.8 tier.
WEAK_INDICATOR_THRESHOLD = 3

# Colour consistency (normalised RMSE).
RMSE_ACCEPTABLE = 0.1

# Vector integrity.
VECTOR_FRIENDLY_IMAGE_LIMIT = 10
SUSPICIOUS_SIZE_KB = 50_000

# Image pre-processing.
DEFAULT_MAX_PIXELS = 15_000
PRINT_PIXEL_MULTIPLIER = 10
DEFAULT_IMAGE_QUALITY = 90

# Pixel sampling probe coordinate.
PIXEL_SAMPLE_POINT = (100, 100)

DEFAULT_CMYK_PROFILE = "Japan Color 2001 Coated"
DEFAULT_RGB_PROFILE = "sRGB"

ENV_ICC_DIR = "PRESSREADY_ICC_DIR"
ENV_TEMP_DIR = "PRESSREADY_TEMP_DIR"
ENV_EXPORT_DIR = "PRESSREADY_EXPORT_DIR"


@dataclass(frozen=True)
class Settings:
    """Filesystem locations used by the pipeline."""

    icc_dir: Path
    temp_dir: Path
    export_dir: Path


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from *environ* (defaults to ``os.environ``)."""

    env = os.environ if environ is None else environ
    return Settings(
        icc_dir=Path(env.get(ENV_ICC_DIR, "icc-profiles")).expanduser().resolve(),
        temp_dir=Path(env.get(ENV_TEMP_DIR, tempfile.gettempdir())).expanduser().resolve(),
        export_dir=Path(env.get(ENV_EXPORT_DIR, "exports")).expanduser().resolve(),
    )
