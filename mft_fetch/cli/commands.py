"""CLI commands for the MFT document fetcher."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from mft_fetch import __version__
from mft_fetch.browser import PlaywrightBrowserSession
from mft_fetch.core.config import Settings, get_settings
from mft_fetch.core.exceptions import ConfigurationException, MftFetchException
from mft_fetch.core.logging import setup_logging
from mft_fetch.pipeline import DocumentPipeline

app = typer.Typer(name="mft-fetch", help="Download all FFESSM MFT documents")
console = Console()
err_console = Console(stderr=True)


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"[bold green]MFT Fetch v{__version__}[/bold green]")


@app.command()
def download(
    output: Optional[Path] = typer.Option(None, help="Output path for PDF files"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
    headless: Optional[bool] = typer.Option(None, "--headless/--no-headless", help="Run the browser headless"),
) -> None:
    """Download, extract and clean up the document archive."""
    overrides: dict = {}
    if output is not None:
        overrides["output_dir"] = output
    if debug:
        overrides["debug"] = True
    if headless is not None:
        overrides["headless"] = headless

    try:
        settings = load_settings(overrides)
        setup_logging(debug=settings.debug, json_output=settings.log_json)

        pipeline = DocumentPipeline(settings, session_factory=lambda: session_factory(settings))
        result = asyncio.run(pipeline.run())
    except MftFetchException as e:
        print_error_chain(e)
        raise typer.Exit(code=1) from e

    console.print(f"[green]✓ {len(result.files)} files extracted to {result.output_dir}[/green]")


def load_settings(overrides: dict) -> Settings:
    """Environment settings with command line overrides applied."""
    try:
        return get_settings().model_copy(update=overrides)
    except ValidationError as e:
        raise ConfigurationException(f"Invalid configuration: {e}") from e


def session_factory(settings: Settings) -> PlaywrightBrowserSession:
    """Build the production browser session from settings."""
    return PlaywrightBrowserSession(headless=settings.headless, user_agent=settings.user_agent)


def print_error_chain(error: BaseException) -> None:
    """Print an exception, its notes and every chained cause."""
    current: BaseException | None = error
    prefix = "Error"
    while current is not None:
        err_console.print(f"[bold red]{prefix}:[/bold red] {escape(str(current))}", highlight=False)
        for note in getattr(current, "__notes__", []):
            err_console.print(f"  [dim]{escape(note)}[/dim]")
        current = current.__cause__
        prefix = "Caused by"


if __name__ == "__main__":
    app()
