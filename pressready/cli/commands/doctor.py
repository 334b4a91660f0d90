"""CLI helpers for the readiness report."""

from __future__ import annotations

from argparse import ArgumentParser, _SubParsersAction

from rich.console import Console
from rich.table import Table

from ...color.diagnostics import ReadinessReport
from ...tools.common.interfaces import ExportContext


def configure_parser(subparsers: _SubParsersAction[ArgumentParser]) -> None:
    parser = subparsers.add_parser("doctor", help="Report colour-management readiness of this host")
    parser.add_argument("--icc-dir", help="Directory holding the ICC profiles")
    parser.add_argument("--no-trial", action="store_true", help="Skip the trial conversion")
    parser.set_defaults(tool_name="doctor", build_context=_build_context, render=render)


def _build_context(args) -> ExportContext:
    return ExportContext(config={"icc_dir": args.icc_dir, "trial": not args.no_trial, "refresh_tools": True})


def render(report: ReadinessReport, console: Console) -> None:
    table = Table(title="Colour pipeline readiness", show_header=False)
    table.add_column("Check", style="cyan")
    table.add_column("Result", style="green")
    table.add_row("CMYK profile", "yes" if report.has_cmyk_profile else "[red]missing[/red]")
    table.add_row("sRGB profile", "yes" if report.has_rgb_profile else "[yellow]missing (optional)[/yellow]")
    table.add_row("Colour tools", ", ".join(report.available_tools) or "[red]none[/red]")
    if report.conversion_works is None:
        trial = "[dim]skipped[/dim]"
    elif report.conversion_works:
        trial = f"ok ({report.trial_method})"
    else:
        trial = "[red]failed[/red]"
    table.add_row("Trial conversion", trial)
    table.add_row("Status", report.status)
    console.print(table)
    if report.recommendations:
        console.print("\n[bold]Recommendations:[/bold]")
        for recommendation in report.recommendations:
            console.print(f"  • {recommendation}")
