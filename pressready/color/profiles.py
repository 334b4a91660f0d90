"""ICC profile registry mapping logical names to files on disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from ..core.config import DEFAULT_CMYK_PROFILE, DEFAULT_RGB_PROFILE, load_settings

_LOGGER = logging.getLogger("pressready.color.profiles")

DEFAULT_PROFILE_FILES: dict[str, str] = {
    DEFAULT_CMYK_PROFILE: "JapanColor2001Coated.icc",
    DEFAULT_RGB_PROFILE: "sRGB.icc",
    "US Web Coated SWOP": "USWebCoatedSWOP.icc",
}


@dataclass(frozen=True)
class ICCProfile:
    """A registered profile; ``exists`` reflects the filesystem at registration."""

    logical_name: str
    file_path: Path
    exists: bool


class ProfileRegistry:
    """Resolves logical profile names such as ``"Japan Color 2001 Coated"``."""

    def __init__(
        self,
        base_dir: str | Path | None = None,
        files: Mapping[str, str | Path] | None = None,
    ) -> None:
        directory = Path(base_dir) if base_dir is not None else load_settings().icc_dir
        mapping = DEFAULT_PROFILE_FILES if files is None else files
        entries = {}
        for name, filename in mapping.items():
            path = Path(filename)
            if not path.is_absolute():
                path = directory / path
            entries[name] = ICCProfile(logical_name=name, file_path=path, exists=path.is_file())
        self._entries: dict[str, ICCProfile] = entries
        self.base_dir = directory

    def resolve(self, logical_name: str) -> Path | None:
        """Return the profile path, or ``None`` (with a warning) when it is missing.

        A ``None`` result means "proceed without ICC", never "abort".
        """

        entry = self._entries.get(logical_name)
        if entry is None:
            _LOGGER.warning("Unknown ICC profile name: %s (known: %s)", logical_name, ", ".join(self._entries))
            return None
        if not entry.file_path.is_file():
            _LOGGER.warning("ICC profile file missing: %s -> %s", logical_name, entry.file_path)
            return None
        return entry.file_path

    def get(self, logical_name: str) -> ICCProfile | None:
        return self._entries.get(logical_name)

    def profiles(self) -> list[ICCProfile]:
        return list(self._entries.values())

    def names(self) -> list[str]:
        return list(self._entries)


__all__ = ["ICCProfile", "ProfileRegistry", "DEFAULT_PROFILE_FILES"]
