"""CLI entry point for md2pdf."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.status import Status
from rich.table import Table

from md2pdf import __version__
from md2pdf.config import Md2PdfConfig, load_config, merge_config, write_default_config
from md2pdf.config.loader import format_validation_errors
from md2pdf.converter import BatchResult, Converter

app = typer.Typer(
    name="md2pdf",
    help="Convert Markdown with Mermaid diagrams to PDF.",
    no_args_is_help=True,
)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

ConfigOpt = Annotated[
    str | None, typer.Option("--config", "-c", help="Path to md2pdf.config.yaml/json")
]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug output")]
FormatOpt = Annotated[
    str | None, typer.Option("--format", "-f", help="Page format (A4, Letter, ...)")
]
ThemeOpt = Annotated[
    str | None,
    typer.Option("--theme", help="Mermaid theme (default, forest, dark, neutral, base)"),
]


def _version_callback(value: bool) -> None:
    if value:
        rprint(f"md2pdf {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version"),
    ] = None,
) -> None:
    """Convert Markdown with Mermaid diagrams to PDF."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool, level: str = "info") -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else _LOG_LEVELS.get(level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _build_overrides(
    *,
    format: str | None = None,
    landscape: bool | None = None,
    margins: dict[str, str | None] | None = None,
    theme: str | None = None,
    css: str | None = None,
    keep_intermediate: bool | None = None,
) -> Md2PdfConfig:
    """Config holding only the options given on the command line."""
    data: dict[str, Any] = {}

    pdf: dict[str, Any] = {}
    if format is not None:
        pdf["format"] = format
    if landscape is not None:
        pdf["landscape"] = landscape
    margin = {k: v for k, v in (margins or {}).items() if v is not None}
    if margin:
        pdf["margin"] = margin
    if pdf:
        data["pdf"] = pdf

    if theme is not None:
        data["mermaid"] = {"theme": theme}
    if css is not None:
        data["style"] = {"css_file": css}
    if keep_intermediate is not None:
        data["keep_intermediate"] = keep_intermediate

    try:
        return Md2PdfConfig.model_validate(data)
    except ValidationError as e:
        rprint(f"[red]Error:[/red] {format_validation_errors(e)}")
        raise typer.Exit(1)


def _resolve_options(config_path: str | None, overrides: Md2PdfConfig, verbose: bool) -> Md2PdfConfig:
    try:
        file_config = load_config(config_path)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    options = merge_config(file_config, overrides)
    _setup_logging(verbose, options.log_level)
    return options


def _display_batch_result(result: BatchResult) -> None:
    table = Table(title=f"Batch Results ({result.total} files)")
    table.add_column("File", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Diagrams", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Detail", style="dim")
    for r in result.results:
        status = "[green]OK[/green]" if r.success else "[red]FAIL[/red]"
        detail = r.error or ("; ".join(r.diagram_errors) if r.diagram_errors else "")
        table.add_row(
            Path(r.input_file).name,
            status,
            str(r.diagram_count),
            f"{r.duration_ms}ms",
            detail,
        )
    rprint(table)

    summary = f"[green]{result.successful} succeeded[/green]"
    if result.failed:
        summary += f", [red]{result.failed} failed[/red]"
    if result.skipped:
        summary += f", [yellow]{result.skipped} not started[/yellow]"
    rprint(f"{summary} [dim]({result.total_duration_ms}ms)[/dim]")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def convert(
    input: str = typer.Argument(..., help="Markdown file to convert"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output PDF path"),
    format: FormatOpt = None,
    landscape: bool | None = typer.Option(
        None, "--landscape/--portrait", help="Page orientation"
    ),
    margin_top: str | None = typer.Option(None, "--margin-top", help="Top margin, e.g. 20mm"),
    margin_right: str | None = typer.Option(None, "--margin-right", help="Right margin"),
    margin_bottom: str | None = typer.Option(None, "--margin-bottom", help="Bottom margin"),
    margin_left: str | None = typer.Option(None, "--margin-left", help="Left margin"),
    theme: ThemeOpt = None,
    css: str | None = typer.Option(None, "--css", help="Custom CSS file"),
    keep_intermediate: bool | None = typer.Option(
        None,
        "--keep-intermediate/--no-keep-intermediate",
        help="Keep intermediate files for debugging",
    ),
    config: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Convert a markdown file to PDF."""
    overrides = _build_overrides(
        format=format,
        landscape=landscape,
        margins={
            "top": margin_top,
            "right": margin_right,
            "bottom": margin_bottom,
            "left": margin_left,
        },
        theme=theme,
        css=css,
        keep_intermediate=keep_intermediate,
    )
    options = _resolve_options(config, overrides, verbose)
    converter = Converter(options)

    with Status(f"[bold]Converting {Path(input).name}...", spinner="dots"):
        result = asyncio.run(converter.convert(input, output))

    if not result.success:
        rprint(f"[red]Conversion failed:[/red] {result.error}")
        raise typer.Exit(1)

    lines = [
        f"[dim]Output:[/dim]    {result.output_file}",
        f"[dim]Diagrams:[/dim]  {result.diagram_count}",
        f"[dim]Time:[/dim]      {result.duration_ms}ms",
    ]
    for err in result.diagram_errors:
        lines.append(f"[yellow]warn:[/yellow] {err}")
    rprint(Panel("\n".join(lines), title="PDF Created", border_style="green"))


@app.command()
def batch(
    patterns: list[str] = typer.Argument(..., help="Glob patterns of markdown files"),
    output_dir: str | None = typer.Option(
        None, "--output-dir", "-o", help="Directory for generated PDFs"
    ),
    concurrency: int = typer.Option(3, "--concurrency", min=1, help="Files converted at once"),
    continue_on_error: bool = typer.Option(
        False, "--continue-on-error", help="Keep going when a file fails"
    ),
    format: FormatOpt = None,
    theme: ThemeOpt = None,
    config: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Convert multiple markdown files."""
    options = _resolve_options(
        config, _build_overrides(format=format, theme=theme), verbose
    )
    converter = Converter(options)

    result = asyncio.run(
        converter.batch_convert(
            patterns,
            output_dir=output_dir,
            concurrency=concurrency,
            continue_on_error=continue_on_error,
        )
    )

    if result.total == 0:
        rprint("[yellow]No files matched.[/yellow]")
        raise typer.Exit(0)

    _display_batch_result(result)
    if result.failed and not continue_on_error:
        raise typer.Exit(1)


async def _watch_forever(
    converter: Converter, patterns: list[str], output_dir: str | None, debounce: int
) -> None:
    session = converter.watch(patterns, output_dir=output_dir, debounce_ms=debounce)
    try:
        await asyncio.Event().wait()
    finally:
        await session.close()


@app.command()
def watch(
    patterns: list[str] = typer.Argument(..., help="Glob patterns of markdown files"),
    output_dir: str | None = typer.Option(
        None, "--output-dir", "-o", help="Directory for generated PDFs"
    ),
    debounce: int = typer.Option(500, "--debounce", "-d", min=0, help="Debounce delay in ms"),
    format: FormatOpt = None,
    theme: ThemeOpt = None,
    config: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Watch files and convert them again whenever they change."""
    options = _resolve_options(
        config, _build_overrides(format=format, theme=theme), verbose
    )
    converter = Converter(options)

    rprint("[bold]md2pdf watch mode[/bold] [dim](Ctrl+C to stop)[/dim]")
    try:
        asyncio.run(_watch_forever(converter, patterns, output_dir, debounce))
    except KeyboardInterrupt:
        rprint("\n[dim]Stopped watching.[/dim]")


@app.command()
def init(
    dir: str = typer.Option(".", "--dir", "-d", help="Directory to create the config in"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create a default md2pdf.config.yaml."""
    try:
        target = write_default_config(dir, force=force)
    except FileExistsError as e:
        rprint(f"[yellow]{e}[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    rprint(f"[green]Created[/green] {target}")
