"""CLI helpers for decoding CMYK/YCCK JPEGs to sRGB."""

from __future__ import annotations

from argparse import ArgumentParser, _SubParsersAction

from ...tools.common.interfaces import ExportContext


def configure_parser(subparsers: _SubParsersAction[ArgumentParser]) -> None:
    parser = subparsers.add_parser("convert-image", help="Convert a CMYK or YCCK JPEG to sRGB")
    parser.add_argument("input", help="Input JPEG file")
    parser.add_argument("output", help="Destination JPEG file")
    encoding = parser.add_mutually_exclusive_group()
    encoding.add_argument("--ycck", dest="ycck", action="store_true", default=None, help="Force the YCCK chain")
    encoding.add_argument("--no-ycck", dest="ycck", action="store_false", help="Force the plain CMYK chain")
    parser.add_argument("--quality", type=int, default=98, help="Output JPEG quality (0-100)")
    parser.set_defaults(tool_name="convert-image", build_context=_build_context)


def _build_context(args) -> ExportContext:
    return ExportContext(
        input_path=args.input,
        output_path=args.output,
        config={"ycck": args.ycck, "quality": args.quality},
    )
