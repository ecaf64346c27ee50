"""CLI application for depbump."""

import asyncio
import json
import signal
import sys
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console

from core.config import Settings, configure_logging
from core.models import CancellationToken, Ecosystem, ProgressEvent, RunStatus, UpdateReport
from core.orchestrator import update_manifest
from core.registry import RegistryResolver

console = Console(stderr=True)

EXIT_STOPPED = 130


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


def format_json_output(report: UpdateReport) -> str:
    """Format JSON output."""
    return json.dumps(
        {
            "status": report.status.value,
            "ecosystem": report.ecosystem.value,
            "results": report.results,
            "output": report.output,
        },
        indent=2,
    )


def print_progress(event: ProgressEvent) -> None:
    console.print(f"[{event.completed}/{event.total}] {event.name} -> {event.version}", markup=False)


async def run_update(
    content: str,
    settings: Settings,
    token: CancellationToken,
    ecosystem: Ecosystem | None = None,
    show_progress: bool = False,
) -> UpdateReport:
    """Run one update with Ctrl+C mapped to cooperative cancellation."""
    loop = asyncio.get_running_loop()

    def on_sigint() -> None:
        # First Ctrl+C stops between fetches; a second one interrupts.
        token.cancel()
        loop.remove_signal_handler(signal.SIGINT)

    try:
        loop.add_signal_handler(signal.SIGINT, on_sigint)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        # No loop signal support (Windows); Ctrl+C raises KeyboardInterrupt instead.
        handler_installed = False

    try:
        async with RegistryResolver(settings) as resolver:
            return await update_manifest(
                content,
                resolver,
                on_progress=print_progress if show_progress else None,
                token=token,
                ecosystem=ecosystem,
            )
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


app = typer.Typer(
    name="depbump",
    help="depbump - Bump a dependency manifest to the latest published versions",
    add_completion=False,
)


@app.command()
def update(
    file_path: str = typer.Argument(help="Manifest file: pom.xml, package.json, Cargo.toml, Gemfile, ... (use '-' for stdin)"),
    output: str | None = typer.Option(None, "--out", "-o", help="Output file (use '-' for stdout)"),
    in_place: bool = typer.Option(False, "--in-place", "-i", help="Update file in place"),
    engine: Ecosystem | None = typer.Option(None, "--engine", help="Force specific ecosystem"),
    format_type: OutputFormat = typer.Option(OutputFormat.TEXT, "--format", help="Output format"),
    progress: bool = typer.Option(True, "--progress/--no-progress", help="Show each package as it resolves"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """depbump - Update a dependency manifest to the latest published versions."""

    try:
        settings = Settings.from_env()
        configure_logging("DEBUG" if verbose else settings.log_level, rich_output=True)

        # Read input
        if file_path == "-":
            content = sys.stdin.read()
        else:
            path_obj = Path(file_path)
            if not path_obj.exists():
                console.print(f"Error: File {file_path} not found", style="red")
                raise typer.Exit(1)
            content = path_obj.read_text()

        token = CancellationToken()
        try:
            report = asyncio.run(run_update(content, settings, token, engine, progress))
        except KeyboardInterrupt:
            console.print("Operation stopped", style="green")
            raise typer.Exit(EXIT_STOPPED)

        if report.status in (RunStatus.UNKNOWN_ECOSYSTEM, RunStatus.ERROR):
            console.print(f"Error: {report.message}", style="red", markup=False)
            raise typer.Exit(1)
        if report.status is RunStatus.STOPPED:
            console.print("Operation stopped", style="green")
            if format_type is OutputFormat.JSON:
                typer.echo(format_json_output(report))
            raise typer.Exit(EXIT_STOPPED)

        # Generate output
        if format_type is OutputFormat.JSON:
            output_content = format_json_output(report)
        else:
            output_content = report.output

        # Write output
        if in_place and file_path != "-":
            Path(file_path).write_text(output_content + "\n")
            console.print(f"Updated {file_path}")
        elif output and output != "-":
            Path(output).write_text(output_content + "\n")
            console.print(f"Wrote updated manifest to {output}")
        else:
            typer.echo(output_content)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"Error: {e}", style="red", markup=False)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
