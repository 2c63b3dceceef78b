#!/usr/bin/env python3
"""gobreakcheck CLI: detect breaking changes in the exported API of Go packages."""
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.markup import escape

from analyzer import CheckResult, PackageResult, check_repository, compare_trees, public_api
from config import CheckConfig
from errors import BreakCheckError
from formatters import JsonFormatter, SarifFormatter, TextFormatter
from logs import configure_logging
from snapshots import GitClient, WorkingTree

app = typer.Typer(help="gobreakcheck: Detect breaking changes in exported Go APIs.")
console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

FORMATTERS = {"text": TextFormatter, "json": JsonFormatter, "sarif": SarifFormatter}


def _print_rich(results: List[PackageResult]) -> None:
    for result in results:
        if result.removed:
            console.print(f"[yellow]{escape(result.package)}: package removed[/yellow]\n")
            continue
        if not len(result.report):
            continue
        console.print(f"[bold]{escape(result.package)}:[/bold]")
        for finding in result.report:
            console.print(f"\n  [bold red]•[/bold red] {escape(finding.reason)}:")
            for site in finding.sites:
                console.print(f"    - {site.location}:", style="cyan", markup=False)
                console.print(f"        {site.signature}", markup=False, soft_wrap=True)
        console.print()


def _emit(result: CheckResult, fmt: str) -> None:
    if fmt == "rich":
        _print_rich(result.packages)
        if result.breaking:
            n, pkgs = result.findings, sum(1 for p in result.packages if p.breaking)
            console.print(f"[bold red]{n} breaking change(s) in {pkgs} package(s)[/bold red]")
        else:
            console.print("[green]No breaking changes detected.[/green]")
        return
    text = FORMATTERS[fmt]().format(result.packages)
    if text:
        typer.echo(text, nl=not text.endswith("\n"))


def _check_format(fmt: str) -> None:
    if fmt != "rich" and fmt not in FORMATTERS:
        err_console.print(f"[red]Invalid format '{fmt}'. Use: rich, text, json, sarif[/red]")
        raise typer.Exit(2)


def _finish(result: CheckResult, fmt: str) -> None:
    _emit(result, fmt)
    if result.breaking:
        raise typer.Exit(1)


@app.command()
def check(
    base: str = typer.Option("HEAD", "--base", "-b", envvar="GOBREAKCHECK_BASE",
                             help="Git revision to compare the working tree against"),
    fmt: str = typer.Option("rich", "--format", "-f", help="Output: rich|text|json|sarif"),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, envvar="GOBREAKCHECK_JOBS",
                             help="Packages compared in parallel"),
    unexported_receivers: bool = typer.Option(
        False, "--unexported-receivers", envvar="GOBREAKCHECK_UNEXPORTED_RECEIVERS",
        help="Treat exported methods on unexported types as public API"),
    repo: Path = typer.Option(Path("."), "--repo", "-C", help="Repository root"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
):
    """Check changed packages in the working tree against a git revision.

    Exits 1 when any breaking change is found.
    """
    _check_format(fmt)
    configure_logging(verbose=verbose)
    config = CheckConfig(
        base_ref=base, include_unexported_receivers=unexported_receivers, jobs=jobs
    )
    try:
        result = check_repository(config, GitClient(repo))
    except BreakCheckError as e:
        err_console.print(f"[red]error:[/red] {escape(str(e))}")
        raise typer.Exit(2)
    _finish(result, fmt)


@app.command()
def compare(
    old: Path = typer.Argument(..., help="Old version source directory"),
    new: Path = typer.Argument(..., help="New version source directory"),
    fmt: str = typer.Option("rich", "--format", "-f", help="Output: rich|text|json|sarif"),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, envvar="GOBREAKCHECK_JOBS",
                             help="Packages compared in parallel"),
    unexported_receivers: bool = typer.Option(
        False, "--unexported-receivers", envvar="GOBREAKCHECK_UNEXPORTED_RECEIVERS",
        help="Treat exported methods on unexported types as public API"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
):
    """Compare two Go source trees and report breaking changes in NEW."""
    _check_format(fmt)
    configure_logging(verbose=verbose)
    config = CheckConfig(include_unexported_receivers=unexported_receivers, jobs=jobs)
    try:
        result = compare_trees(old, new, config)
    except BreakCheckError as e:
        err_console.print(f"[red]error:[/red] {escape(str(e))}")
        raise typer.Exit(2)
    _finish(result, fmt)


@app.command()
def api(
    directory: Path = typer.Argument(Path("."), help="Go package directory"),
    unexported_receivers: bool = typer.Option(
        False, "--unexported-receivers", envvar="GOBREAKCHECK_UNEXPORTED_RECEIVERS",
        help="Treat exported methods on unexported types as public API"),
):
    """Print the exported API surface of one package."""
    configure_logging()
    config = CheckConfig(include_unexported_receivers=unexported_receivers)
    try:
        lines = public_api(WorkingTree(directory), ".", config)
    except BreakCheckError as e:
        err_console.print(f"[red]error:[/red] {escape(str(e))}")
        raise typer.Exit(2)
    for line in lines:
        typer.echo(line)


if __name__ == "__main__":
    app()
