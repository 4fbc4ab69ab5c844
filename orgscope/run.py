"""Command-line entry point: analyze a roster export and print the results."""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

import pandas as pd
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from orgscope import analysis
from orgscope.analysis.automation import summarize_automation
from orgscope.analysis.models import AnalysisSnapshot
from orgscope.analysis.snapshot import snapshot_to_dict
from orgscope.config import BenchmarkConfigError, load_policy
from orgscope.utils.io import write_output
from orgscope.utils.types import OpportunityLevel, Severity

console = Console()

# Snapshot collections exported as flat tables
EXPORT_TABLES = (
    "layer_stats",
    "span_stats",
    "function_stats",
    "country_stats",
    "business_unit_stats",
    "tenure_stats",
    "function_span_stats",
    "findings",
    "offshoring_opportunities",
    "automation",
    "recent_joiners",
    "new_hire_stats",
)
EXTENSIONS = {"csv": "csv", "json": "json", "excel": "xlsx"}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _money(value: float) -> str:
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"${value / 1_000:.0f}K"
    return f"${value:.0f}"


def print_summary(snapshot: AnalysisSnapshot) -> None:
    totals = snapshot.totals
    summary = Table(title=f"Organization Summary (as of {snapshot.as_of.isoformat()})")
    summary.add_column("Metric")
    summary.add_column("Value", justify="right")
    summary.add_row("Headcount", f"{totals.headcount:,}")
    summary.add_row("Total FLRR", _money(totals.total_flrr))
    summary.add_row("Average FLRR", _money(totals.avg_flrr))
    summary.add_row("Layers", str(totals.layers))
    summary.add_row("Average span", f"{totals.avg_span:.1f}")
    summary.add_row("Managers", f"{totals.total_managers:,} ({totals.manager_percent:.1f}%)")
    summary.add_row("Manager : IC", f"{totals.manager_to_ic_ratio:.2f}")
    summary.add_row("Root direct reports", str(totals.root_direct_reports))
    summary.add_row("Best-cost footprint", f"{totals.best_cost_percent:.1f}%")
    summary.add_row("Variable pay", f"{totals.avg_variable_percent:.1f}%")
    savings = sum(o.potential_savings for o in snapshot.offshoring_opportunities)
    summary.add_row("Offshoring savings", _money(savings))
    automatable = summarize_automation(snapshot.automation)[OpportunityLevel.HIGH]["headcount"]
    summary.add_row("High automation potential", f"{automatable:,} employees")
    if totals.excluded_count:
        summary.add_row("[yellow]Excluded (unreachable)[/yellow]", str(totals.excluded_count))
    console.print(summary)

    layers = Table(title="Layers")
    for column in ("Layer", "Headcount", "Managers", "ICs", "Avg FLRR", "Avg tenure"):
        layers.add_column(column, justify="right")
    for stat in snapshot.layer_stats:
        layers.add_row(
            str(stat.layer),
            str(stat.headcount),
            str(stat.managers),
            str(stat.ics),
            _money(stat.avg_flrr),
            f"{stat.avg_tenure:.1f}y",
        )
    console.print(layers)

    findings = Table(title="Quick Wins")
    findings.add_column("Impact")
    findings.add_column("Category")
    findings.add_column("Finding")
    findings.add_column("Metric")
    for finding in snapshot.findings:
        match finding.severity:
            case Severity.HIGH:
                impact = "[red]high[/red]"
            case Severity.MEDIUM:
                impact = "[yellow]medium[/yellow]"
            case _:
                impact = "[green]low[/green]"
        findings.add_row(impact, finding.category, finding.description, finding.metric or "")
    console.print(findings)


def export_tables(snapshot: AnalysisSnapshot, output_dir: Path, fmt: str) -> None:
    if fmt not in EXTENSIONS:
        raise ValueError(f"Unsupported output format: {fmt}")
    data = snapshot_to_dict(snapshot)
    for name in EXPORT_TABLES:
        write_output(pd.DataFrame(data[name]), output_dir / f"{name}.{EXTENSIONS[fmt]}", fmt=fmt)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Analyze an employee roster's org structure")
    parser.add_argument("roster", type=Path, help="Roster export (.csv or .xlsx)")
    parser.add_argument("--policy", type=Path, help="Benchmark policy file (.yaml or .toml)")
    parser.add_argument("--as-of", type=date.fromisoformat, help="Reference date for tenure (YYYY-MM-DD)")
    parser.add_argument("--output", type=Path, help="Directory to write analysis tables to")
    parser.add_argument("--format", choices=sorted(EXTENSIONS), default="csv", help="Output table format")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        policy = load_policy(args.policy)
        snapshot, warnings = analysis.run(args.roster, policy=policy, as_of=args.as_of)
    except (BenchmarkConfigError, FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)

    for warning in warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")

    if snapshot.totals.headcount == 0:
        console.print("[red]No valid employee records found[/red]")
        sys.exit(1)

    print_summary(snapshot)

    if args.output:
        export_tables(snapshot, args.output, args.format)


if __name__ == "__main__":
    main()
