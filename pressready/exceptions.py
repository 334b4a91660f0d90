"""Custom exception types for :mod:`pressready`."""

from __future__ import annotations

from typing import Sequence


class PressReadyError(Exception):
    """Base exception for all pressready related errors."""


class InvalidInputError(PressReadyError, ValueError):
    """Raised when a conversion request is malformed (missing DPI, missing source)."""


class ConfigurationMissingError(PressReadyError):
    """Raised when a required ICC profile or external tool is not installed."""


class ToolInvocationError(PressReadyError):
    """Raised when an external process cannot be spawned or exits non-zero."""

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr


class ValidationInconclusiveError(PressReadyError):
    """Raised when a validation probe cannot reach a verdict."""


class RenderError(PressReadyError):
    """Raised when the vector renderer fails to produce a document."""


__all__ = [
    "PressReadyError",
    "InvalidInputError",
    "ConfigurationMissingError",
    "ToolInvocationError",
    "ValidationInconclusiveError",
    "RenderError",
]
