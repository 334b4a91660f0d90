"""Detection of the external colour and inspection tools.

The result is an immutable :class:`ToolAvailability` snapshot. It is built
once per process by :func:`detect_tools` (or on an explicit refresh) and is
passed into the conversion engine and validators, so tests can hand in a
fabricated snapshot instead.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from ..core.process import run_subprocess
from ..exceptions import ToolInvocationError

_LOGGER = logging.getLogger("pressready.color.availability")


class ToolName(str, Enum):
    """External tools the pipeline knows how to drive."""

    JPGICC = "jpgicc"
    IMAGEMAGICK = "imagemagick"
    GHOSTSCRIPT = "ghostscript"
    EXIFTOOL = "exiftool"
    INKSCAPE = "inkscape"


@dataclass(frozen=True)
class ToolInfo:
    """Availability of one external tool and how to invoke it."""

    name: str
    available: bool
    invocation_command: str | None = None
    version_major: int | None = None


@dataclass(frozen=True)
class _Candidate:
    executable: str
    version_args: tuple[str, ...]
    default_major: int | None = None


# Newer command names first: ImageMagick 7 ships ``magick``, 6 ships ``convert``.
_TOOL_CANDIDATES: list[tuple[ToolName, Sequence[_Candidate]]] = [
    (ToolName.JPGICC, (_Candidate("jpgicc", ("-v",)),)),
    (
        ToolName.IMAGEMAGICK,
        (
            _Candidate("magick", ("-version",), default_major=7),
            _Candidate("convert", ("-version",), default_major=6),
        ),
    ),
    (
        ToolName.GHOSTSCRIPT,
        (
            _Candidate("gs", ("--version",)),
            _Candidate("gswin64c", ("--version",)),
            _Candidate("gswin32c", ("--version",)),
        ),
    ),
    (ToolName.EXIFTOOL, (_Candidate("exiftool", ("-ver",)),)),
    (ToolName.INKSCAPE, (_Candidate("inkscape", ("--version",)),)),
]

_VERSION_PATTERN = re.compile(r"(\d+)\.\d+")


@dataclass(frozen=True)
class ToolAvailability:
    """Read-only capability table keyed by tool name."""

    tools: Mapping[str, ToolInfo] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tools", MappingProxyType(dict(self.tools)))

    @classmethod
    def from_infos(cls, infos: Iterable[ToolInfo]) -> "ToolAvailability":
        return cls({info.name: info for info in infos})

    def get(self, name: ToolName | str) -> ToolInfo:
        key = name.value if isinstance(name, ToolName) else name
        return self.tools.get(key, ToolInfo(name=key, available=False))

    def is_available(self, name: ToolName | str) -> bool:
        return self.get(name).available

    def command(self, name: ToolName | str) -> str | None:
        info = self.get(name)
        return info.invocation_command if info.available else None

    def available_names(self) -> list[str]:
        return sorted(name for name, info in self.tools.items() if info.available)

    def imagemagick_subcommand(self, subcommand: str) -> list[str] | None:
        """Return the argv prefix for ``identify``/``compare`` on the installed major version."""

        info = self.get(ToolName.IMAGEMAGICK)
        if not info.available or not info.invocation_command:
            return None
        if info.version_major is not None and info.version_major >= 7:
            return [info.invocation_command, subcommand]
        return [subcommand]


def _parse_major(output: str, default: int | None) -> int | None:
    match = _VERSION_PATTERN.search(output)
    if match:
        return int(match.group(1))
    return default


async def _probe(name: ToolName, candidates: Sequence[_Candidate]) -> ToolInfo:
    for candidate in candidates:
        try:
            result = await run_subprocess([candidate.executable, *candidate.version_args], check=False)
        except ToolInvocationError as exc:
            _LOGGER.debug("%s not usable as %s: %s", name.value, candidate.executable, exc)
            continue
        if result.ok:
            return ToolInfo(
                name=name.value,
                available=True,
                invocation_command=candidate.executable,
                version_major=_parse_major(result.output, candidate.default_major),
            )
        _LOGGER.debug("%s probe via %s exited with %s", name.value, candidate.executable, result.returncode)
    return ToolInfo(name=name.value, available=False)


async def probe_tools() -> ToolAvailability:
    """Probe every known tool once, without caching. Never raises."""

    infos = [await _probe(name, candidates) for name, candidates in _TOOL_CANDIDATES]
    availability = ToolAvailability.from_infos(infos)
    _LOGGER.info("Available colour tools: %s", ", ".join(availability.available_names()) or "none")
    if availability.is_available(ToolName.GHOSTSCRIPT):
        _LOGGER.warning(
            "Ghostscript is only used as a last-resort CMYK rewrite without ICC support"
        )
    return availability


_CACHE: ToolAvailability | None = None


async def detect_tools(*, refresh: bool = False) -> ToolAvailability:
    """Return the process-wide snapshot, probing on first use or when *refresh* is set."""

    global _CACHE
    if _CACHE is None or refresh:
        _CACHE = await probe_tools()
    return _CACHE


def clear_cache() -> None:
    global _CACHE
    _CACHE = None


__all__ = [
    "ToolName",
    "ToolInfo",
    "ToolAvailability",
    "probe_tools",
    "detect_tools",
    "clear_cache",
]
