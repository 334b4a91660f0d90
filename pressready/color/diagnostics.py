"""Readiness report for the colour-management setup of this host."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from PIL import Image

from ..core.config import DEFAULT_CMYK_PROFILE, DEFAULT_RGB_PROFILE
from ..core.process import scratch_files
from ..exceptions import PressReadyError
from .availability import ToolAvailability, ToolName
from .engine import CMYKConversionEngine
from .profiles import ProfileRegistry

_LOGGER = logging.getLogger("pressready.color.diagnostics")

COLOR_TOOLS = (ToolName.JPGICC, ToolName.IMAGEMAGICK, ToolName.GHOSTSCRIPT)

STATUS_READY = "ready"
STATUS_PARTIAL = "partial"
STATUS_MISSING = "missing"

TRIAL_DPI = 72


@dataclasses.dataclass(frozen=True)
class ReadinessReport:
    ready: bool
    status: str
    has_cmyk_profile: bool
    has_rgb_profile: bool
    available_tools: tuple[str, ...]
    conversion_works: bool | None = None
    trial_method: str | None = None
    recommendations: tuple[str, ...] = ()


async def run_trial_conversion(engine: CMYKConversionEngine) -> tuple[bool, str | None]:
    """Convert a generated one-page RGB PDF and report whether any strategy succeeded."""

    with scratch_files(engine.temp_dir, "doctor", ".pdf", "input", "output") as (source, destination):
        Image.new("RGB", (200, 200), (200, 30, 30)).save(source, format="PDF", resolution=TRIAL_DPI)
        try:
            result = await engine.convert_pdf(source, destination, target_dpi=TRIAL_DPI)
        except PressReadyError as exc:
            _LOGGER.warning("Trial conversion raised: %s", exc)
            return False, None
    if not result.success:
        _LOGGER.warning("Trial conversion failed: %s", result.error)
    return result.success, result.method if result.success else None


async def assess_readiness(
    profiles: ProfileRegistry,
    availability: ToolAvailability,
    *,
    engine: CMYKConversionEngine | None = None,
    temp_dir: str | Path | None = None,
    run_trial: bool = True,
) -> ReadinessReport:
    """Summarise whether CMYK output with ICC semantics can be produced here.

    The trial conversion only runs when both the CMYK profile and a colour
    tool are present; skipping it leaves ``conversion_works`` as ``None``.
    """

    has_cmyk_profile = profiles.resolve(DEFAULT_CMYK_PROFILE) is not None
    has_rgb_profile = profiles.resolve(DEFAULT_RGB_PROFILE) is not None
    tools = tuple(tool.value for tool in COLOR_TOOLS if availability.is_available(tool))
    has_color_tool = bool(tools)

    conversion_works: bool | None = None
    trial_method: str | None = None
    if run_trial and has_cmyk_profile and has_color_tool:
        engine = engine or CMYKConversionEngine(availability, profiles, temp_dir=temp_dir)
        conversion_works, trial_method = await run_trial_conversion(engine)

    recommendations: list[str] = []
    if has_cmyk_profile and has_color_tool and conversion_works is not False:
        status = STATUS_READY
    elif has_cmyk_profile and has_color_tool:
        status = STATUS_PARTIAL
        recommendations += [
            "Check that the renderer and colour tools run from this shell (e.g. `magick -version`)",
            "Check read permissions on the ICC profile files",
            "Re-run with --verbose to see the tool output",
        ]
    else:
        status = STATUS_MISSING
        if not has_cmyk_profile:
            entry = profiles.get(DEFAULT_CMYK_PROFILE)
            filename = entry.file_path.name if entry is not None else f"the {DEFAULT_CMYK_PROFILE} profile"
            recommendations.append(f"Place {filename} in {profiles.base_dir}")
        if not has_color_tool:
            recommendations.append("Install jpgicc (recommended) or ImageMagick")
    if not has_rgb_profile:
        recommendations.append("Optional: add an sRGB profile for explicit source-profile conversion")

    report = ReadinessReport(
        ready=status == STATUS_READY,
        status=status,
        has_cmyk_profile=has_cmyk_profile,
        has_rgb_profile=has_rgb_profile,
        available_tools=tools,
        conversion_works=conversion_works,
        trial_method=trial_method,
        recommendations=tuple(recommendations),
    )
    _LOGGER.info("Colour pipeline readiness: %s", status)
    return report


__all__ = [
    "ReadinessReport",
    "STATUS_READY",
    "STATUS_PARTIAL",
    "STATUS_MISSING",
    "assess_readiness",
    "run_trial_conversion",
]
