"""CLI helpers for exporting SVG designs to validated CMYK PDFs."""

from __future__ import annotations

from argparse import ArgumentParser, ArgumentTypeError, _SubParsersAction

from ...core.config import DEFAULT_CMYK_PROFILE
from ...tools.common.interfaces import ExportContext


def _region(value: str) -> tuple[str, str]:
    region_id, separator, path = value.partition("=")
    if not separator or not region_id or not path:
        raise ArgumentTypeError(f"expected REGION_ID=SVG_PATH, got {value!r}")
    return region_id, path


def configure_parser(subparsers: _SubParsersAction[ArgumentParser]) -> None:
    parser = subparsers.add_parser("export", help="Render SVG designs and convert them to CMYK PDFs")
    parser.add_argument("input", nargs="?", help="Single design SVG (omit when using --region)")
    parser.add_argument(
        "--region",
        dest="regions",
        action="append",
        type=_region,
        metavar="REGION_ID=SVG_PATH",
        help="Add a region to a multi-region export (repeatable)",
    )
    parser.add_argument("--image", dest="images", action="append", help="Embedded image to pre-process (repeatable)")
    parser.add_argument("--dpi", type=int, required=True, help="Target resolution; there is no default")
    parser.add_argument("--profile", default=DEFAULT_CMYK_PROFILE, help="Destination ICC profile name")
    parser.add_argument("--export-dir", help="Root directory for task output")
    parser.add_argument("--task-id", help="Reuse a task id instead of generating one")
    parser.add_argument("--skip-consistency", action="store_true", help="Skip the RMSE colour comparison")
    parser.set_defaults(tool_name="export", build_context=_build_context)


def _build_context(args) -> ExportContext:
    if not args.input and not args.regions:
        raise SystemExit("export needs an input SVG or at least one --region")
    return ExportContext(
        input_path=args.input,
        config={
            "dpi": args.dpi,
            "profile": args.profile,
            "regions": args.regions or [],
            "images": args.images or [],
            "export_dir": args.export_dir,
            "task_id": args.task_id,
            "consistency": not args.skip_consistency,
        },
    )
