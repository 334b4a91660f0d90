"""Namespace for pluggable pressready tools."""

from __future__ import annotations

from .common.pipeline import registry


def load_builtin_plugins() -> None:
    from . import conversion  # noqa: F401  # registers convert and convert-image
    from . import doctor  # noqa: F401
    from . import export  # noqa: F401
    from . import preprocess  # noqa: F401
    from . import validation  # noqa: F401


__all__ = ["registry", "load_builtin_plugins"]
