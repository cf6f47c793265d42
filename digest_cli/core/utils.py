"""Console output and logging helpers shared by the CLI commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.text import Text

if TYPE_CHECKING:
    from rich.status import Status

console = Console()
err_console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(log_level: str, log_file: str | None, *, quiet: bool) -> None:
    """Configure the root logger for a CLI run.

    Logs go to the rich stderr console unless ``quiet`` is set, and
    additionally to ``log_file`` when one is given.
    """
    handlers: list[logging.Handler] = []
    if not quiet:
        handlers.append(RichHandler(console=err_console, rich_tracebacks=True))
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        handlers.append(file_handler)
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )
    # Keep HTTP client noise out of INFO output
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def print_with_style(message: str, style: str = "bold green") -> None:
    """Print a message with a rich style."""
    console.print(Text(message, style=style))


def print_error_message(message: str, suggestion: str | None = None) -> None:
    """Print an error panel with an optional suggestion."""
    error_text = Text(message)
    if suggestion:
        error_text.append("\n\n")
        error_text.append(suggestion)
    err_console.print(Panel(error_text, title="Error", border_style="bold red"))


def print_input_panel(text: str, title: str = "Input") -> None:
    """Print the (possibly truncated) input inside a panel."""
    console.print(Panel(Text(text), title=title, border_style="bold blue"))


def print_output_panel(
    text: str,
    title: str = "Output",
    subtitle: str | None = None,
) -> None:
    """Print a result inside a panel."""
    console.print(
        Panel(Text(text), title=title, subtitle=subtitle, border_style="bold green"),
    )


def print_command_line_args(args: dict[str, Any]) -> None:
    """Print the arguments a command was invoked with."""
    lines = [f"[bold]{k}[/bold] = {v!r}" for k, v in sorted(args.items())]
    console.print(Panel("\n".join(lines), title="Command line arguments", border_style="dim"))


def create_status(message: str, style: str = "bold yellow") -> Status:
    """Create a spinner status with the given message."""
    return console.status(Text(message, style=style))


def create_progress() -> Progress:
    """Create a progress bar for pipeline steps."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    )
