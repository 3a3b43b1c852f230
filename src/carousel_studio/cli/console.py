"""Rich console singleton for CLI output."""

from __future__ import annotations

import sys

from rich.console import Console

from ..errors import CarouselStudioError, ProviderError, ValidationError

# Windows cp1252 cannot encode the Unicode box drawing characters
console = Console(safe_box=sys.platform == "win32")


def print_error(message: str, details: dict | None = None) -> None:
    """Print an error message with optional key/value details."""
    console.print(f"[red]Error: {message}[/red]")
    if details:
        for key, value in details.items():
            console.print(f"  [dim]{key}:[/dim] [yellow]{value}[/yellow]")


def print_studio_error(error: CarouselStudioError) -> None:
    """Print a domain error with the details its type carries."""
    details: dict | None = None
    if isinstance(error, ValidationError) and error.details:
        details = {k: v for k, v in error.details.items() if k != "errors"}
        for item in error.details.get("errors", []):
            location = ".".join(str(part) for part in item.get("loc", ()))
            details[location or "payload"] = item.get("msg", "")
    elif isinstance(error, ProviderError):
        details = {"provider": error.provider, "type": error.error_type, "retryable": error.retryable}
    print_error(str(error), details)


def print_warning(message: str) -> None:
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    console.print(f"[cyan]{message}[/cyan]")
