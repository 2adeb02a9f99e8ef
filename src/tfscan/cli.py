"""tfscan CLI — Typer application with scan, report, detect, validate, and init commands."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from tfscan import __version__

app = typer.Typer(
    name="tfscan",
    help="Scan Terraform merge requests with Trivy and build the review comment.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=debug, markup=False)],
        force=True,
    )


def _load_config(config: Optional[str]):
    from tfscan.config.loader import ConfigError, load_config

    try:
        return load_config(Path.cwd(), config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


def _apply_format(cfg, format: Optional[str]) -> None:
    from tfscan.config.schema import OUTPUT_FORMATS

    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format


def _emit(text: str) -> None:
    print(text, end="" if text.endswith("\n") else "\n")


def _write_output(output: Optional[str], text: str, verbose: bool) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")


def _build_request(
    request_file: Optional[str],
    project_id: Optional[int],
    project_path: Optional[str],
    mr: Optional[int],
    branch: str,
    files: Optional[List[str]],
):
    from tfscan.scanner.models import RequestError, ScanRequest, load_request

    try:
        if request_file:
            return load_request(Path(request_file))
        return ScanRequest.from_dict({
            "project_id": project_id,
            "project_path": project_path,
            "mr_iid": mr,
            "source_branch": branch,
            "file_paths": list(files or []),
        })
    except RequestError as exc:
        console.print(f"[bold red]Invalid request:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


# ── scan ──────────────────────────────────────────────────────────────────────


@app.command()
def scan(
    request_file: Optional[str] = typer.Option(None, "--request", "-r", help="YAML/JSON request manifest"),
    project_id: Optional[int] = typer.Option(None, "--project-id", help="Numeric project ID"),
    project_path: Optional[str] = typer.Option(None, "--project-path", help="Project path, e.g. group/infra"),
    mr: Optional[int] = typer.Option(None, "--mr", help="Merge request IID"),
    branch: str = typer.Option("", "--branch", help="Source branch"),
    files: Optional[List[str]] = typer.Option(None, "--file", "-F", help="Changed file (repeatable)"),
    repo: Optional[str] = typer.Option(None, "--repo", help="Stage files from this git clone at --branch"),
    source_dir: Optional[str] = typer.Option(None, "--source-dir", help="Stage files from this directory"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .tfscan.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: markdown | json | terminal"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write report to file"),
    keep_files: bool = typer.Option(False, "--keep-files", help="Keep staged files and the raw artifact"),
    fail_on_findings: bool = typer.Option(False, "--fail-on-findings", help="Exit 1 when findings exist"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
) -> None:
    """Stage, scan, split, and report one merge request."""
    from tfscan.git.adapter import GitError, GitFileSource, get_repo_root
    from tfscan.output import json_report, terminal
    from tfscan.scanner.orchestrator import ScanError, build_scanner
    from tfscan.scanner.staging import DirectoryFileSource, cleanup_request, stage_files

    _setup_logging(verbose, debug)
    cfg = _load_config(config)
    _apply_format(cfg, format)

    if repo and source_dir:
        console.print("[bold red]Error:[/bold red] --repo and --source-dir are mutually exclusive")
        raise typer.Exit(code=2)

    request = _build_request(request_file, project_id, project_path, mr, branch, files)

    scanner = build_scanner(cfg)
    if scanner is None:
        console.print("[bold red]Error:[/bold red] scanner is not available, skipping scan")
        raise typer.Exit(code=2)

    # --- Stage files ---
    staged = False
    if repo or source_dir:
        if repo:
            try:
                source = GitFileSource(get_repo_root(Path(repo)))
            except GitError as exc:
                console.print(f"[bold red]Git error:[/bold red] {exc}")
                raise typer.Exit(code=2) from exc
        else:
            source = DirectoryFileSource(Path(source_dir))
        result = stage_files(request, scanner.layout, source)
        staged = True
        if result.failed:
            console.print(f"[yellow]⚠[/yellow]  {len(result.failed)} file(s) could not be staged")
        if not result.saved:
            console.print("[bold red]Error:[/bold red] no files were staged")
            cleanup_request(request, scanner.layout)
            raise typer.Exit(code=2)
        request = dataclasses.replace(request, file_paths=tuple(result.saved))

    # --- Run scan ---
    try:
        scan_report = scanner.run(request)
    except ScanError as exc:
        console.print(f"[bold red]Scan error:[/bold red] {exc}")
        if staged and not keep_files:
            cleanup_request(request, scanner.layout)
        raise typer.Exit(code=2) from exc

    if staged and not keep_files:
        # degraded reports point the reader at the raw artifact
        degraded = scan_report.outcome.has_findings and not scan_report.summary_ok
        cleanup_request(request, scanner.layout, keep_raw=degraded)

    # --- Output ---
    if cfg.output.format == "json":
        text = json_report.render(scan_report.message, scan_report.outcome, scan_report.aggregation)
    else:
        text = scan_report.message

    if cfg.output.format == "terminal" and scan_report.aggregation is not None:
        terminal.render(scan_report.aggregation, console)
    else:
        _emit(text)

    _write_output(output, text, verbose)

    if fail_on_findings and scan_report.outcome.has_findings:
        raise typer.Exit(code=1)


# ── report ────────────────────────────────────────────────────────────────────


@app.command()
def report(
    split_dir: str = typer.Argument(..., help="Directory populated by trivy-parser"),
    naming: Optional[str] = typer.Option(None, "--naming", help="auto | prefix | bracket"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .tfscan.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: markdown | json | terminal"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write report to file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
) -> None:
    """Build the review comment from an existing split result directory."""
    from tfscan.config.schema import NAMING_MODES
    from tfscan.findings.aggregator import AggregationError, aggregate
    from tfscan.output import json_report, markdown, terminal

    _setup_logging(verbose, debug)
    cfg = _load_config(config)
    _apply_format(cfg, format)
    if naming:
        if naming not in NAMING_MODES:
            console.print(f"[bold red]Invalid naming:[/bold red] {naming}")
            raise typer.Exit(code=2)
        cfg.report.naming = naming

    try:
        agg = aggregate(Path(split_dir), cfg.report.naming, cfg.report.source_extension)
    except AggregationError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    text = markdown.render(agg)
    if cfg.output.format == "json":
        text = json_report.render(text, agg=agg)

    if cfg.output.format == "terminal":
        terminal.render(agg, console)
    else:
        _emit(text)

    _write_output(output, text, verbose)


# ── detect ────────────────────────────────────────────────────────────────────


@app.command()
def detect(
    raw_file: str = typer.Argument(..., help="Raw trivy JSON artifact"),
) -> None:
    """Report whether a raw artifact contains findings (exit 1 if it does)."""
    from tfscan.scanner.presence import check_raw_artifact

    try:
        found = check_raw_artifact(Path(raw_file))
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] cannot read {raw_file}: {exc}")
        raise typer.Exit(code=2) from exc

    if found:
        print("findings")
        raise typer.Exit(code=1)
    print("clean")


# ── validate ──────────────────────────────────────────────────────────────────


@app.command()
def validate(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .tfscan.toml"),
) -> None:
    """Check that trivy, trivy-parser, and the custom policies exist."""
    from tfscan.scanner.orchestrator import Scanner
    from tfscan.scanner.tools import ToolError

    cfg = _load_config(config)
    try:
        Scanner.from_config(cfg).validate_setup()
    except ToolError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1) from exc
    console.print("[green]✓[/green] Scanner setup is valid")


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .tfscan.toml in the current directory."""
    from tfscan.config.defaults import DEFAULT_TOML
    from tfscan.config.loader import CONFIG_FILE_NAME

    config_path = Path.cwd() / CONFIG_FILE_NAME
    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILE_NAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"tfscan {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """tfscan — Trivy IaC scans for merge requests."""
