"""Independent verification that a produced document really is CMYK.

None of the conversion tools report whether colour semantics were applied,
only exit codes, so several unrelated probes inspect the artifact and their
verdicts are combined into a weighted consensus.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import re
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Literal, Mapping, Sequence

from ..core.config import (
    DEFAULT_PROBE_WEIGHT,
    METADATA_PROBE_WEIGHT,
    UNDEFINED_CONFIDENCE,
    WEAK_INDICATOR_THRESHOLD,
)
from ..core.process import run_subprocess
from ..core.utils import resolve_path
from ..exceptions import ToolInvocationError, ValidationInconclusiveError
from .availability import ToolAvailability, ToolName
from .commands import build_exiftool_color_command, build_inkcov_command, build_pixel_sample_command
from .engine import parse_exiftool_fields

_LOGGER = logging.getLogger("pressready.color.validators")

ColorSpace = Literal["CMYK", "RGB"]

PIXEL_PROBE = "pixel-analysis"
METADATA_PROBE = "exiftool"
STRUCTURE_PROBE = "identify"
INK_COVERAGE_PROBE = "ghostscript"
IMAGE_LIST_PROBE = "pdfimages"
DOCUMENT_INFO_PROBE = "pdfinfo"

DEFAULT_PROBES: tuple[str, ...] = (PIXEL_PROBE, METADATA_PROBE, STRUCTURE_PROBE, INK_COVERAGE_PROBE)
OPTIONAL_PROBES: tuple[str, ...] = (IMAGE_LIST_PROBE, DOCUMENT_INFO_PROBE)

PROBE_WEIGHTS: Mapping[str, float] = {METADATA_PROBE: METADATA_PROBE_WEIGHT}


@dataclasses.dataclass(frozen=True)
class ColorSpaceValidation:
    """Verdict of a single probe. ``confidence`` may be ``None`` when undefined."""

    success: bool
    color_space: ColorSpace
    confidence: float | None
    method: str
    details: dict[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class WeightedConsensus:
    """Combined verdict across probes."""

    success: bool
    color_space: ColorSpace
    confidence: float
    summary: str
    per_method_results: tuple[ColorSpaceValidation, ...] = ()
    cmyk_weight: float = 0.0
    total_weight: float = 0.0
    error: str | None = None


def probe_weight(method: str) -> float:
    return PROBE_WEIGHTS.get(method, DEFAULT_PROBE_WEIGHT)


def normalize_confidence(value: float | None) -> float:
    """Undefined, NaN or infinite confidences count as 0.5; the rest are clamped to [0, 1]."""

    if value is None:
        return UNDEFINED_CONFIDENCE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return UNDEFINED_CONFIDENCE
    if not math.isfinite(number):
        return UNDEFINED_CONFIDENCE
    return min(1.0, max(0.0, number))


def combine_validations(results: Iterable[ColorSpaceValidation]) -> WeightedConsensus:
    """Weighted average of probe confidences; CMYK wins only with more than half the weight.

    An exact tie is therefore reported as RGB.
    """

    successful = [result for result in results if result.success]
    if not successful:
        return WeightedConsensus(
            success=False,
            color_space="RGB",
            confidence=0.0,
            summary="no validation probe produced a result",
            error="all validation methods failed",
        )

    total_weight = 0.0
    weighted_sum = 0.0
    cmyk_weight = 0.0
    cmyk_count = 0
    for result in successful:
        weight = probe_weight(result.method)
        total_weight += weight
        weighted_sum += normalize_confidence(result.confidence) * weight
        if result.color_space == "CMYK":
            cmyk_weight += weight
            cmyk_count += 1

    confidence = normalize_confidence(weighted_sum / total_weight)
    is_cmyk = cmyk_weight > total_weight / 2
    summary = (
        f"{cmyk_count}/{len(successful)} probes detected CMYK "
        f"(weight CMYK={cmyk_weight:.1f}, total={total_weight:.1f})"
    )
    return WeightedConsensus(
        success=True,
        color_space="CMYK" if is_cmyk else "RGB",
        confidence=confidence,
        summary=summary,
        per_method_results=tuple(successful),
        cmyk_weight=cmyk_weight,
        total_weight=total_weight,
    )


# -- probes ------------------------------------------------------------------


async def probe_pixel(path: Path, availability: ToolAvailability) -> ColorSpaceValidation:
    """Rasterise and sample one pixel; a ``cmyk(`` pixel format is conclusive."""

    executable = availability.command(ToolName.IMAGEMAGICK)
    if executable is None:
        raise ValidationInconclusiveError("ImageMagick is not installed")
    result = await run_subprocess(build_pixel_sample_command(executable, path))
    value = result.stdout.strip()
    if not value:
        raise ValidationInconclusiveError("pixel sample returned no value")
    is_cmyk = "cmyk(" in value.lower()
    return ColorSpaceValidation(
        success=True,
        color_space="CMYK" if is_cmyk else "RGB",
        confidence=1.0 if is_cmyk else 0.5,
        method=PIXEL_PROBE,
        details={"pixel_value": value},
    )


_COLORANTS = ("cyan", "magenta", "yellow", "black")


def classify_metadata(output: str) -> ColorSpaceValidation:
    """Score exiftool colour fields into the strong/weak indicator tiers."""

    fields = parse_exiftool_fields(output)
    lowered = output.lower()
    description = fields.get("icc profile description") or fields.get("profile description", "")

    strong = [
        fields.get("color space", "").lower() == "cmyk",
        fields.get("device color space", "").lower() == "cmyk",
        "japan color 2001 coated" in description.lower(),
        fields.get("color components", "").strip() == "4",
    ]
    colorants = fields.get("colorants", "").lower()
    weak = [colorant in colorants for colorant in _COLORANTS]
    weak.append(fields.get("print color mode", "").lower() == "cmyk")

    strong_matches = sum(strong)
    weak_matches = sum(weak)
    if strong_matches >= 1:
        color_space, confidence = "CMYK", 0.95
    elif weak_matches >= WEAK_INDICATOR_THRESHOLD:
        color_space, confidence = "CMYK", 0.8
    elif weak_matches >= 1:
        color_space, confidence = "CMYK", 0.7
    elif "cmyk" in lowered:
        color_space, confidence = "CMYK", 0.6
    else:
        color_space, confidence = "RGB", 0.7

    return ColorSpaceValidation(
        success=True,
        color_space=color_space,
        confidence=confidence,
        method=METADATA_PROBE,
        details={
            "strong_matches": strong_matches,
            "weak_matches": weak_matches,
            "has_icc_profile": bool(description),
            "fields": fields,
        },
    )


async def probe_metadata(path: Path, availability: ToolAvailability) -> ColorSpaceValidation:
    executable = availability.command(ToolName.EXIFTOOL)
    if not executable:
        raise ValidationInconclusiveError("exiftool is not installed")
    result = await run_subprocess(build_exiftool_color_command(path, executable))
    return classify_metadata(result.stdout)


_STRUCTURE_INDICATORS = ("colorspace: cmyk", "devicecmyk", "channels: 4", "cmyk(")


def classify_structure(outputs: Sequence[str]) -> ColorSpaceValidation:
    combined = "\n".join(outputs).lower()
    matches = [indicator for indicator in _STRUCTURE_INDICATORS if indicator in combined]
    # ``-format "%[colorspace] %[channels]"`` prints e.g. "CMYK cmyk".
    format_line = outputs[-1].strip().lower() if outputs else ""
    if format_line.startswith("cmyk") and "colorspace: cmyk" not in matches:
        matches.append("colorspace: cmyk")

    count = len(matches)
    if count >= 2:
        color_space, confidence = "CMYK", min(0.9, 0.6 + count * 0.1)
    elif count == 1:
        color_space, confidence = "CMYK", 0.7
    else:
        color_space, confidence = "RGB", 0.5
    return ColorSpaceValidation(
        success=True,
        color_space=color_space,
        confidence=confidence,
        method=STRUCTURE_PROBE,
        details={"indicators": matches, "total_checks": len(_STRUCTURE_INDICATORS)},
    )


async def probe_structure(path: Path, availability: ToolAvailability) -> ColorSpaceValidation:
    prefix = availability.imagemagick_subcommand("identify")
    if prefix is None:
        raise ValidationInconclusiveError("ImageMagick identify is not installed")
    commands = [
        [*prefix, "-verbose", f"{path}[0]"],
        [*prefix, "-format", "%[colorspace] %[channels]", f"{path}[0]"],
    ]
    outputs: list[str] = []
    for command in commands:
        try:
            outputs.append((await run_subprocess(command)).stdout)
        except ToolInvocationError as exc:
            _LOGGER.debug("identify sub-command failed: %s", exc)
    if not outputs:
        raise ValidationInconclusiveError("every identify command failed")
    return classify_structure(outputs)


_INK_COVERAGE_LINE = re.compile(r"(\d+\.\d+)\s+(\d+\.\d+)\s+(\d+\.\d+)\s+(\d+\.\d+)\s+cmyk")


def classify_ink_coverage(output: str) -> ColorSpaceValidation:
    lowered = output.lower()
    match = _INK_COVERAGE_LINE.search(lowered)
    if match:
        color_space, confidence = "CMYK", 0.8
    elif "cmyk" in lowered or "devicecmyk" in lowered:
        color_space, confidence = "CMYK", 0.7
    else:
        color_space, confidence = "RGB", 0.6
    return ColorSpaceValidation(
        success=True,
        color_space=color_space,
        confidence=confidence,
        method=INK_COVERAGE_PROBE,
        details={
            "has_ink_coverage": match is not None,
            "coverage": [float(value) for value in match.groups()] if match else None,
        },
    )


async def probe_ink_coverage(path: Path, availability: ToolAvailability) -> ColorSpaceValidation:
    executable = availability.command(ToolName.GHOSTSCRIPT)
    if executable is None:
        raise ValidationInconclusiveError("Ghostscript is not installed")
    result = await run_subprocess(build_inkcov_command(executable, path), check=False)
    if not result.ok and not result.output.strip():
        raise ValidationInconclusiveError(f"inkcov exited with {result.returncode} and no output")
    return classify_ink_coverage(result.output)


def classify_image_list(output: str) -> ColorSpaceValidation:
    cmyk_images = 0
    rgb_images = 0
    for line in output.splitlines()[2:]:
        lowered = line.lower()
        if "cmyk" in lowered:
            cmyk_images += 1
        elif "rgb" in lowered or "gray" in lowered:
            rgb_images += 1
    is_cmyk = cmyk_images > 0 and cmyk_images >= rgb_images
    return ColorSpaceValidation(
        success=True,
        color_space="CMYK" if is_cmyk else "RGB",
        confidence=None,
        method=IMAGE_LIST_PROBE,
        details={"cmyk_images": cmyk_images, "rgb_images": rgb_images},
    )


async def probe_image_list(path: Path, availability: ToolAvailability) -> ColorSpaceValidation:
    result = await run_subprocess(["pdfimages", "-list", str(path)])
    return classify_image_list(result.stdout)


async def probe_document_info(path: Path, availability: ToolAvailability) -> ColorSpaceValidation:
    result = await run_subprocess(["pdfinfo", str(path)])
    lowered = result.stdout.lower()
    is_cmyk = any(marker in lowered for marker in ("cmyk", "devicecmyk", "separation"))
    return ColorSpaceValidation(
        success=True,
        color_space="CMYK" if is_cmyk else "RGB",
        confidence=None,
        method=DOCUMENT_INFO_PROBE,
        details={"has_cmyk_indicators": "cmyk" in lowered},
    )


Probe = Callable[[Path, ToolAvailability], Awaitable[ColorSpaceValidation]]

PROBES: dict[str, Probe] = {
    PIXEL_PROBE: probe_pixel,
    METADATA_PROBE: probe_metadata,
    STRUCTURE_PROBE: probe_structure,
    INK_COVERAGE_PROBE: probe_ink_coverage,
    IMAGE_LIST_PROBE: probe_image_list,
    DOCUMENT_INFO_PROBE: probe_document_info,
}


async def validate_color_space(
    path: str | Path,
    availability: ToolAvailability,
    *,
    probes: Sequence[str] = DEFAULT_PROBES,
) -> WeightedConsensus:
    """Run *probes* against *path* and combine their verdicts.

    A probe that raises is excluded; validation continues with the rest.
    """

    document = resolve_path(path)
    results: list[ColorSpaceValidation] = []
    for name in probes:
        try:
            probe = PROBES[name]
        except KeyError as exc:
            raise ValueError(f"Unknown colour-space probe: {name}") from exc
        try:
            result = await probe(document, availability)
        except (ToolInvocationError, ValidationInconclusiveError, OSError) as exc:
            _LOGGER.warning("Colour probe %s inconclusive: %s", name, exc)
            continue
        _LOGGER.info(
            "Colour probe %s: %s (confidence %.2f)",
            name,
            result.color_space,
            normalize_confidence(result.confidence),
        )
        results.append(result)

    consensus = combine_validations(results)
    _LOGGER.info("Colour-space consensus for %s: %s", document.name, consensus.summary)
    return consensus


__all__ = [
    "ColorSpaceValidation",
    "WeightedConsensus",
    "DEFAULT_PROBES",
    "OPTIONAL_PROBES",
    "PROBES",
    "combine_validations",
    "normalize_confidence",
    "probe_weight",
    "classify_metadata",
    "classify_structure",
    "classify_ink_coverage",
    "classify_image_list",
    "validate_color_space",
]
