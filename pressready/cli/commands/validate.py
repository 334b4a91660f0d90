"""CLI helpers for validating a converted PDF."""

from __future__ import annotations

from argparse import ArgumentParser, _SubParsersAction

from ...color.validators import DEFAULT_PROBES, PROBES
from ...tools.common.interfaces import ExportContext


def configure_parser(subparsers: _SubParsersAction[ArgumentParser]) -> None:
    parser = subparsers.add_parser("validate", help="Check colour space and vector integrity of a PDF")
    parser.add_argument("input", help="PDF to validate")
    parser.add_argument(
        "--probe",
        dest="probes",
        action="append",
        choices=sorted(PROBES),
        help=f"Colour probe to run (repeatable; default: {', '.join(DEFAULT_PROBES)})",
    )
    parser.add_argument("--skip-vector", action="store_true", help="Skip the vector-integrity check")
    parser.set_defaults(tool_name="validate", build_context=_build_context)


def _build_context(args) -> ExportContext:
    return ExportContext(
        input_path=args.input,
        config={"probes": args.probes, "vector": not args.skip_vector},
    )
