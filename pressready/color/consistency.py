"""Before/after colour difference between a document and its CMYK conversion."""

from __future__ import annotations

import dataclasses
import logging
import re
from pathlib import Path

from ..core.config import RMSE_ACCEPTABLE
from ..core.process import run_subprocess
from ..core.utils import resolve_path
from ..exceptions import ToolInvocationError
from .availability import ToolAvailability
from .commands import build_compare_command

_LOGGER = logging.getLogger("pressready.color.consistency")

_NORMALISED = re.compile(r"\((\d+(?:\.\d+)?(?:e[-+]?\d+)?)\)", re.IGNORECASE)
_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")


@dataclasses.dataclass(frozen=True)
class ConsistencyReport:
    rmse: float | None
    acceptable: bool
    raw: str


def parse_rmse(output: str) -> float | None:
    """Pull the normalised RMSE out of ``compare`` output such as ``1234.5 (0.0188)``."""

    match = _NORMALISED.search(output) or _NUMBER.search(output)
    if match is None:
        return None
    return float(match.group(1))


async def check_color_consistency(
    original: str | Path,
    converted: str | Path,
    availability: ToolAvailability,
) -> ConsistencyReport | None:
    """Compare the first page of both documents; ``None`` when no comparison could run."""

    prefix = availability.imagemagick_subcommand("compare")
    if prefix is None:
        _LOGGER.warning("ImageMagick compare is not installed; skipping colour consistency check")
        return None

    command = build_compare_command(prefix, resolve_path(original), resolve_path(converted))
    try:
        # compare exits 1 when the images differ, which is the normal case here.
        result = await run_subprocess(command, check=False)
    except ToolInvocationError as exc:
        _LOGGER.warning("Colour consistency check failed: %s", exc)
        return None

    raw = result.output.strip()
    rmse = parse_rmse(raw)
    if rmse is None:
        _LOGGER.warning("Unable to parse RMSE from compare output: %r", raw)
        return None
    report = ConsistencyReport(rmse=rmse, acceptable=rmse < RMSE_ACCEPTABLE, raw=raw)
    if not report.acceptable:
        _LOGGER.warning("Large colour difference after conversion (RMSE %.4f)", rmse)
    return report


__all__ = ["ConsistencyReport", "check_color_consistency", "parse_rmse"]
