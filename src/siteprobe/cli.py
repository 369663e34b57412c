"""siteprobe CLI - website security scanner."""

import json
import logging
import re

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from siteprobe.errors import NetworkError, ScanError
from siteprobe.modules.scan import SCANNER_TIERS, Report, ScanOptions, Status, Target, scan_url
from siteprobe.utils.async_utils import run_sync

app = typer.Typer(
    name="siteprobe",
    help="Scan a website for security misconfigurations and grade the result",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

EXIT_CLEAN = 0
EXIT_ISSUES = 1

GRADE_STYLES = {
    "A+": "bold bright_green",
    "A": "green",
    "B": "cyan",
    "C": "yellow",
    "D": "magenta",
    "F": "red",
}
STATUS_STYLES = {
    Status.PASS: ("✓", "green"),
    Status.WARN: ("⚠", "yellow"),
    Status.FAIL: ("✗", "red"),
    Status.ERROR: ("⚠", "red"),
    Status.INFO: ("ℹ", "blue"),
}


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # httpcore is far too chatty at DEBUG
    logging.getLogger("httpcore").setLevel(logging.INFO)


def _section_title(name: str) -> str:
    return re.sub(r"([A-Z])", r" \1", name).strip().capitalize()


def render_brief(report: Report) -> str:
    summary = report.summary
    style = GRADE_STYLES.get(report.grade, "white")
    return (
        f"{escape(report.target.url)} [{style}]{report.grade}[/{style}] ({report.percentage}/100) "
        f"[green]{summary.passed} ✓[/green] [yellow]{summary.warnings} ⚠[/yellow] "
        f"[red]{summary.failed} ✗[/red]"
    )


def render_report(report: Report) -> None:
    data = report.to_dict()
    style = GRADE_STYLES.get(report.grade, "white")
    console.print(f"[bold]Target:[/bold]   [cyan]{escape(report.target.url)}[/cyan]")
    console.print(f"[bold]Tier:[/bold]     {report.tier}")
    console.print(f"[bold]Duration:[/bold] {data['scanDuration']}ms")
    console.print(
        f"[bold]Grade:[/bold]    [{style}]{report.grade}[/{style}] "
        f"({data['score']}/{data['maxScore']}, {report.percentage}/100)"
    )

    table = Table(title="Sections")
    table.add_column("Section", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Grade", justify="center")
    for name, section in data["sections"].items():
        grade_style = GRADE_STYLES.get(section["grade"], "white")
        table.add_row(
            _section_title(name),
            f"{section['score']}/{section['maxScore']}",
            f"[{grade_style}]{section['grade']}[/{grade_style}]",
        )
    console.print(table)

    for name, section in report.sections.items():
        problems = [f for f in section.findings if f.status in (Status.FAIL, Status.WARN, Status.ERROR)]
        if not problems:
            continue
        console.print(f"\n[bold underline]{_section_title(name)}[/bold underline]")
        for finding in problems:
            icon, color = STATUS_STYLES[finding.status]
            console.print(f"  [{color}]{icon}[/{color}] {escape(finding.name)}: {escape(finding.message)}")
            if finding.recommendation:
                console.print(f"    [dim]→ {escape(finding.recommendation)}[/dim]")

    summary = report.summary
    console.print(
        f"\n[green]{summary.passed} passed[/green] │ [yellow]{summary.warnings} warnings[/yellow] │ "
        f"[red]{summary.failed} failed[/red] │ [blue]{summary.info} info[/blue]"
    )


def _print_error(message: str, code: str, json_output: bool) -> None:
    if json_output:
        typer.echo(json.dumps({"error": message, "code": code}, indent=2))
    else:
        err_console.print(f"[red]Error:[/red] {escape(message)}")


@app.command()
def version() -> None:
    """Show the installed siteprobe version."""
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as pkg_version

    try:
        current_version = pkg_version("siteprobe")
    except PackageNotFoundError:
        current_version = "0.0.0+unknown"

    console.print(f"siteprobe {current_version}")


@app.command()
def scan(
    url: str = typer.Argument(..., help="URL or hostname to scan"),
    full: bool = typer.Option(False, "--full", help="Run every probe regardless of tier"),
    tier: str | None = typer.Option(None, "--tier", help="Probe tier: free or pro"),
    timeout: float | None = typer.Option(None, "--timeout", help="Per-probe timeout in seconds"),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    brief: bool = typer.Option(False, "--brief", help="One-line summary"),
    ci: bool = typer.Option(False, "--ci", help="Exit 1 when the score is below --min-score"),
    min_score: int = typer.Option(70, "--min-score", min=0, max=100, help="Minimum score for --ci"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log probe activity"),
) -> None:
    """Scan a website and print its graded security report."""
    _configure_logging(verbose)

    if tier is not None and tier.lower() not in SCANNER_TIERS:
        raise typer.BadParameter(f"must be one of: {', '.join(SCANNER_TIERS)}", param_hint="--tier")
    if timeout is not None and timeout <= 0:
        raise typer.BadParameter("must be a positive number of seconds", param_hint="--timeout")
    try:
        target = Target.from_url(url)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="URL") from exc

    options = ScanOptions.from_config(
        tier=tier.lower() if tier else None,
        timeout=timeout,
        full=full,
    )
    quiet = json_output or brief
    if not quiet:
        label = "pro" if full else options.tier
        console.print(f"[blue]Scanning {escape(target.url)} ({label} tier)...[/blue]")

    progress = None
    if verbose and not quiet:

        def progress(message: str) -> None:
            err_console.print(f"[dim]{escape(message)}[/dim]")

    try:
        report = run_sync(scan_url(target.url, options, progress=progress))
    except NetworkError as exc:
        _print_error(str(exc), "ERR_NETWORK", json_output)
        raise typer.Exit(EXIT_ISSUES) from exc
    except ScanError as exc:
        _print_error(str(exc), "ERR_SCAN", json_output)
        raise typer.Exit(EXIT_ISSUES) from exc

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    elif brief:
        console.print(render_brief(report))
    else:
        render_report(report)

    if ci:
        if report.percentage < min_score:
            if not quiet:
                err_console.print(
                    f"[yellow]CI mode: score {report.percentage}/100 below minimum {min_score}[/yellow]"
                )
            raise typer.Exit(EXIT_ISSUES)
        raise typer.Exit(EXIT_CLEAN)

    if report.summary.failed > 0:
        raise typer.Exit(EXIT_ISSUES)


def main():
    """Entry point for the CLI."""
    app()
