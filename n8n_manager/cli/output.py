"""Console output and logging setup."""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape


console = Console(highlight=False)


def log_info(message: str) -> None:
    console.print(f"[blue]\\[INFO][/blue] {escape(message)}")


def log_success(message: str) -> None:
    console.print(f"[green]\\[SUCCESS][/green] {escape(message)}")


def log_warning(message: str) -> None:
    console.print(f"[yellow]\\[WARNING][/yellow] {escape(message)}")


def log_error(message: str) -> None:
    console.print(f"[red]\\[ERROR][/red] {escape(message)}")


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through Rich; DEBUG shows every delegated command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
