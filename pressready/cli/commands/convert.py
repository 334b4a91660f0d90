"""CLI helpers for converting a PDF to CMYK."""

from __future__ import annotations

from argparse import ArgumentParser, _SubParsersAction

from ...color.models import RenderingIntent
from ...core.config import DEFAULT_CMYK_PROFILE
from ...tools.common.interfaces import ExportContext


def configure_parser(subparsers: _SubParsersAction[ArgumentParser]) -> None:
    parser = subparsers.add_parser("convert", help="Convert a PDF to CMYK with an ICC profile")
    parser.add_argument("input", help="Input PDF file")
    parser.add_argument("output", help="Destination for the CMYK PDF")
    parser.add_argument("--dpi", type=int, required=True, help="Target resolution; there is no default")
    parser.add_argument("--profile", default=DEFAULT_CMYK_PROFILE, help="Destination ICC profile name")
    parser.add_argument(
        "--intent",
        choices=[intent.value for intent in RenderingIntent],
        default=RenderingIntent.PERCEPTUAL.value,
        help="ICC rendering intent",
    )
    parser.add_argument("--quality", type=int, default=95, help="JPEG quality inside the PDF (0-100)")
    parser.set_defaults(tool_name="convert", build_context=_build_context)


def _build_context(args) -> ExportContext:
    return ExportContext(
        input_path=args.input,
        output_path=args.output,
        config={"dpi": args.dpi, "profile": args.profile, "intent": args.intent, "quality": args.quality},
    )
