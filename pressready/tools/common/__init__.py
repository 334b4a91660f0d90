"""Shared plugin infrastructure."""

from __future__ import annotations

from .interfaces import BaseTool, ExportContext, ToolFactory
from .pipeline import ToolRegistry, register_tool, registry

__all__ = ["BaseTool", "ExportContext", "ToolFactory", "ToolRegistry", "register_tool", "registry"]
