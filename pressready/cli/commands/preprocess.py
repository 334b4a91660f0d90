"""CLI helpers for normalising an uploaded bitmap."""

from __future__ import annotations

from argparse import ArgumentParser, _SubParsersAction

from ...core.config import DEFAULT_IMAGE_QUALITY, DEFAULT_MAX_PIXELS
from ...tools.common.interfaces import ExportContext


def configure_parser(subparsers: _SubParsersAction[ArgumentParser]) -> None:
    parser = subparsers.add_parser("preprocess", help="Normalise a bitmap to an sRGB JPEG")
    parser.add_argument("input", help="Input image")
    parser.add_argument("output", nargs="?", help="Destination (defaults to overwriting the input)")
    parser.add_argument("--max-pixels", type=int, default=DEFAULT_MAX_PIXELS, help="Longest allowed edge")
    parser.add_argument("--quality", type=int, default=DEFAULT_IMAGE_QUALITY, help="JPEG quality (1-100)")
    parser.add_argument("--print", dest="print_mode", action="store_true", help="Preserve detail for print output")
    parser.set_defaults(tool_name="preprocess", build_context=_build_context)


def _build_context(args) -> ExportContext:
    return ExportContext(
        input_path=args.input,
        output_path=args.output,
        config={"max_pixels": args.max_pixels, "quality": args.quality, "print": args.print_mode},
    )
