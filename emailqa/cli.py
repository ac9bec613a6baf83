"""CLI entry point: all commands defined here."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from emailqa import __version__

app = typer.Typer(
    name="emailqa",
    help="HTML email quality assurance tool.",
    no_args_is_help=True,
)
console = Console()

_state: dict[str, Optional[Path]] = {"config": None}  # noqa: UP007


def version_callback(value: bool) -> None:
    if value:
        console.print(f"emailqa {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(  # noqa: UP007
        None, "--version", "-v", callback=version_callback, is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log analysis progress."),
    config: Optional[Path] = typer.Option(  # noqa: UP007
        None, "--config", "-c", help="Path to an emailqa.yaml config file.",
    ),
) -> None:
    """emailqa: HTML email compliance, accessibility and performance checks."""
    if verbose:
        from rich.logging import RichHandler

        logging.basicConfig(
            level=logging.DEBUG, format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )
    _state["config"] = config


def _load_config():
    from emailqa.config import EmailQAConfig

    path = _state["config"]
    if path is not None and not path.is_file():
        console.print(f"[red]Config not found:[/red] {path}")
        raise typer.Exit(code=1)
    return EmailQAConfig.load(path)


def _read_html(path: Path) -> str:
    if not path.is_file():
        console.print(f"[red]File not found:[/red] {path}")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8", errors="replace")


def _score(value: float) -> str:
    colour = "green" if value >= 0.8 else "yellow" if value >= 0.6 else "red"
    return f"[{colour}]{value:.2f}[/{colour}]"


@app.command()
def check(
    html_file: Path = typer.Argument(..., help="Path to the HTML email to analyze."),
) -> None:
    """Run the full quality analysis and print a summary."""
    from emailqa.pipeline import run_quality_assurance

    html = _read_html(html_file)
    cfg = _load_config()
    report = run_quality_assurance(html, cfg.analysis, rules=cfg.build_rules())

    table = Table(title=f"Email Quality Report: {html_file.name}")
    table.add_column("Metric", style="bold")
    table.add_column("Value")

    table.add_row("Overall", f"{_score(report.overall_score)} ({report.overall_grade})")
    table.add_row(
        "Markup compliance",
        f"{_score(report.html.score)} ({report.html.passed_checks}/{report.html.total_checks} checks)",
    )
    table.add_row(
        "Accessibility",
        f"{_score(report.accessibility.score)} (WCAG {report.accessibility.wcag_level})",
    )
    table.add_row(
        "Performance",
        f"{_score(report.performance.score)} (grade {report.performance.grade})",
    )
    table.add_row("Size", f"{report.test_metadata.html_size_bytes} bytes")
    for cs in report.client_compatibility:
        table.add_row(f"Client: {cs.client}", _score(cs.score))
    table.add_row("Issues", str(report.summary.total_issues))

    console.print(table)

    if report.recommendations:
        console.print()
        priority_icon = {
            "critical": "[red]X[/red]",
            "high": "[red]![/red]",
            "medium": "[yellow]![/yellow]",
            "low": "[blue]i[/blue]",
        }
        for rec in report.recommendations:
            icon = priority_icon.get(rec.priority.value, " ")
            console.print(f"  {icon} {escape(f'[{rec.category}] {rec.title}: {rec.description}')}")


@app.command()
def report(
    html_file: Path = typer.Argument(..., help="Path to the HTML email to analyze."),
    output: Optional[Path] = typer.Option(  # noqa: UP007
        None, "--output", "-o", help="Report path. Defaults to <name>.quality.<ext>.",
    ),
    fmt: Optional[str] = typer.Option(  # noqa: UP007
        None, "--format", "-f", help="Report format: json or markdown.",
    ),
) -> None:
    """Write a full quality report to disk."""
    from emailqa.pipeline import run_quality_assurance
    from emailqa.reporter import format_summary, write_json_report, write_markdown_report

    html = _read_html(html_file)
    cfg = _load_config()

    fmt = (fmt or cfg.output.report_format).lower()
    if fmt not in ("json", "markdown"):
        console.print(f"[red]Unknown format:[/red] {fmt} (expected json or markdown)")
        raise typer.Exit(code=1)

    if output is None:
        ext = "json" if fmt == "json" else "md"
        output = html_file.with_name(f"{html_file.stem}.quality.{ext}")

    result = run_quality_assurance(html, cfg.analysis, rules=cfg.build_rules())
    if fmt == "json":
        write_json_report(result, output)
    else:
        write_markdown_report(result, output, title=html_file.name)

    console.print(format_summary(result), markup=False, highlight=False)
    console.print(f"[green]OK[/green] Report written to {output}")


@app.command()
def client(
    html_file: Path = typer.Argument(..., help="Path to the HTML email to validate."),
    name: str = typer.Option(..., "--client", help="Client name, e.g. gmail or outlook."),
) -> None:
    """Validate an email against one client's requirements."""
    from emailqa.clients import client_score, validate_for_client

    html = _read_html(html_file)
    rules = _load_config().build_rules()
    result = validate_for_client(html, name, rules=rules)

    status = "[green]compatible[/green]" if result.compatible else "[red]not compatible[/red]"
    console.print(f"{name}: {status} (support {result.support_score:.2f}, "
                  f"heuristic {client_score(html, name):.2f})")
    for issue in result.issues:
        console.print(f"  [red]X[/red] {escape(issue)}")
    for rec in result.recommendations:
        console.print(f"  [yellow]![/yellow] {escape(rec)}")
