"""Command line interface for pressready."""

from __future__ import annotations

import argparse
from typing import Any, Sequence

from rich.console import Console

from ..core.utils import configure_logging, to_jsonable
from ..exceptions import PressReadyError
from ..tools import load_builtin_plugins
from ..tools.common.interfaces import ExportContext
from ..tools.common.pipeline import registry
from .commands import convert, convert_image, doctor, export, preprocess, validate

COMMAND_MODULES = [convert, convert_image, preprocess, validate, export, doctor]

console = Console()


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pressready", description="Print-ready CMYK export pipeline")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True
    for module in COMMAND_MODULES:
        module.configure_parser(subparsers)
    return parser


def _succeeded(result: Any) -> bool:
    for attribute in ("success", "ready"):
        value = getattr(result, attribute, None)
        if value is not None:
            return bool(value)
    region_count = getattr(result, "region_count", None)
    if region_count is not None:
        return region_count > 0 and result.successful_regions == region_count
    return True


def _print_result(result: Any) -> None:
    data = result.to_dict() if hasattr(result, "to_dict") else to_jsonable(result)
    console.print_json(data=data)


def main(argv: Sequence[str] | None = None) -> int:
    load_builtin_plugins()
    parser = _create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    context: ExportContext = args.build_context(args)
    tool = registry.create(args.tool_name, context)
    try:
        result = tool.run()
    except PressReadyError as exc:
        console.print(f"[bold red]✗ Error:[/bold red] {exc}")
        return 2
    render = getattr(args, "render", None)
    if render is not None:
        render(result, console)
    else:
        _print_result(result)
    return 0 if _succeeded(result) else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
