"""Rich terminal reporter with a per-file table and severity pills."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from tfscan.findings.aggregator import Aggregation
from tfscan.findings.models import SeveritySummary

_SEVERITY_STYLE = {
    "CRITICAL": "bold white on red",
    "HIGH": "bold white on dark_orange",
    "MEDIUM": "bold black on yellow",
    "LOW": "bold black on bright_cyan",
}

_SEVERITY_ICON = {
    "CRITICAL": "🔴",
    "HIGH": "🟠",
    "MEDIUM": "🟡",
    "LOW": "🔵",
}


def _severity_pill(severity: str, count: int) -> Text:
    sev = severity.upper()
    style = _SEVERITY_STYLE.get(sev, "") if count else "dim"
    icon = _SEVERITY_ICON.get(sev, "")
    return Text(f" {icon} {sev} {count} ", style=style)


def _status(passed: bool) -> Text:
    return Text("✅ pass", style="green") if passed else Text("❌ fail", style="bold red")


def _summary_line(summary: SeveritySummary) -> Text:
    line = Text()
    for sev, count in summary.to_dict().items():
        line.append_text(_severity_pill(sev, count))
        line.append(" ")
    return line


def render(agg: Aggregation, console: Optional[Console] = None) -> None:
    """Print the aggregation to the terminal using Rich."""
    console = console or Console(stderr=True)

    if not agg.files:
        console.print()
        console.print("[bold yellow]⚠️  No split result files found.[/bold yellow]")
        return

    console.print()
    table = Table(
        title="Trivy Scan Results",
        show_lines=True,
        title_style="bold",
        border_style="dim",
    )
    table.add_column("File", style="magenta")
    table.add_column("Custom", justify="center")
    table.add_column("Built-in", justify="center")
    table.add_column("Violations", min_width=30)

    for name in agg.sorted_files():
        result = agg.files[name]
        violations = Text()
        for v in result.custom_violations + result.builtin_violations:
            sev = v.severity.upper()
            violations.append(f"{sev:<8} ", style=_SEVERITY_STYLE.get(sev, ""))
            violations.append(f" {v.title}\n")
        table.add_row(
            name,
            _status(result.custom_passed),
            _status(result.builtin_passed),
            violations if violations.plain else Text("-", style="dim"),
        )

    console.print(table)
    _print_summary(console, agg)


def _print_summary(console: Console, agg: Aggregation) -> None:
    failed = len(agg.failed_files())
    console.print()
    console.print(_summary_line(agg.combined_total))
    console.print(f"[dim]Files scanned:[/dim]   {len(agg.files)}")
    console.print(f"[dim]Files failing:[/dim]   {failed}")
    console.print(f"[dim]Built-in policy:[/dim] {agg.builtin_total.total}")
    console.print(f"[dim]Custom policy:[/dim]   {agg.custom_total.total}")
    if agg.skipped:
        console.print(f"[dim]Skipped files:[/dim]   {len(agg.skipped)}")

    console.print()
    if failed:
        console.print("[bold red]❌ Policy violations found.[/bold red]")
    else:
        console.print("[bold green]✅ All scanned files passed every policy.[/bold green]")
