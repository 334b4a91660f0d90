"""Plugin registry mapping CLI command names to tool classes."""

from __future__ import annotations

from typing import Dict, Iterable

from .interfaces import BaseTool, ExportContext, ToolFactory


class ToolRegistry:
    """Name -> tool class table populated by :func:`register_tool`."""

    def __init__(self) -> None:
        self._tools: Dict[str, type[BaseTool]] = {}

    def register(self, name: str, tool_class: type[BaseTool], *, replace: bool = False) -> None:
        if name in self._tools and not replace and self._tools[name] is not tool_class:
            raise ValueError(f"Tool '{name}' is already registered to {self._tools[name].__name__}")
        self._tools[name] = tool_class

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    def create(self, name: str, context: ExportContext) -> BaseTool:
        tool_class = self._tools.get(name)
        if tool_class is None:
            known = ", ".join(self.names()) or "none"
            raise KeyError(f"Tool '{name}' is not registered (known: {known})")
        return tool_class(context)

    def names(self) -> Iterable[str]:
        return sorted(self._tools)

    def get(self, name: str) -> type[BaseTool] | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


registry = ToolRegistry()


def register_tool(name: str):
    """Class decorator registering a :class:`BaseTool` under *name*."""

    def decorator(cls: type[BaseTool]) -> type[BaseTool]:
        cls.name = name
        registry.register(name, cls)
        return cls

    return decorator


__all__ = ["ToolRegistry", "registry", "register_tool", "ExportContext", "BaseTool", "ToolFactory"]
