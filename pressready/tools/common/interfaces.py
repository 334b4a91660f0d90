"""Core interfaces and context objects shared by pressready tools."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from ...color.availability import ToolAvailability, detect_tools
from ...color.engine import CMYKConversionEngine
from ...color.profiles import ProfileRegistry
from ...core.config import Settings, load_settings
from ...core.utils import resolve_path
from ...exceptions import InvalidInputError


@dataclass
class ExportContext:
    """Holds shared execution state for a tool invocation."""

    input_path: Path | None = None
    output_path: Path | None = None
    settings: Settings | None = None
    availability: ToolAvailability | None = None
    resources: dict[str, Any] = field(default_factory=dict)
    config: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.input_path, (str, Path)):
            self.input_path = resolve_path(self.input_path)
        if isinstance(self.output_path, (str, Path)):
            self.output_path = resolve_path(self.output_path)
        if self.settings is None:
            self.settings = load_settings()

    def profiles(self) -> ProfileRegistry:
        registry = self.resources.get("profiles")
        if registry is None:
            registry = ProfileRegistry(self.config.get("icc_dir") or self.settings.icc_dir)
            self.resources["profiles"] = registry
        return registry

    async def ensure_availability(self) -> ToolAvailability:
        if self.availability is None:
            self.availability = await detect_tools(refresh=bool(self.config.get("refresh_tools")))
        return self.availability

    async def ensure_engine(self) -> CMYKConversionEngine:
        engine = self.resources.get("engine")
        if engine is None:
            availability = await self.ensure_availability()
            engine = CMYKConversionEngine(availability, self.profiles(), temp_dir=self.settings.temp_dir)
            self.resources["engine"] = engine
        return engine

    def require_input(self, tool: str) -> Path:
        if self.input_path is None:
            raise InvalidInputError(f"{tool} requires an input path")
        return self.input_path

    def require_output(self, tool: str) -> Path:
        if self.output_path is None:
            raise InvalidInputError(f"{tool} requires an output path")
        return self.output_path


class BaseTool:
    """Base class for all pluggable pressready tools.

    Subclasses implement :meth:`run_async`; :meth:`run` drives it to
    completion for synchronous callers such as the CLI.
    """

    name: str

    def __init__(self, context: ExportContext) -> None:
        self.context = context

    @classmethod
    def configure_parser(cls, parser: Any) -> None:  # pragma: no cover - optional hook
        """Hook allowing tools to extend CLI parsers."""

    async def run_async(self) -> Any:  # pragma: no cover - to be implemented by subclasses
        raise NotImplementedError

    def run(self) -> Any:
        result = asyncio.run(self.run_async())
        self.context.resources["result"] = result
        return result


ToolFactory = Callable[[ExportContext], BaseTool]
