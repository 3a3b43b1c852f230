"""Typer app configuration and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from dotenv import load_dotenv

from ..settings import get_settings

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="carousel",
    help="AI carousel generator: prompt to slides, backgrounds and exports",
    add_completion=False,
)


def register_commands() -> None:
    """Register all commands."""
    from .commands import delete, export, generate, list_generations, status

    app.command(name="generate")(generate)
    app.command(name="status")(status)
    app.command(name="list")(list_generations)
    app.command(name="delete")(delete)
    app.command(name="export")(export)


def _file_handler(path: Path) -> logging.FileHandler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    return handler


def _route(name: str, handler: logging.Handler) -> None:
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.handlers = [handler]


def setup_logging(log_dir: Path | None = None) -> None:
    """Configure logging for CLI.

    - Suppresses console output from libraries
    - Writes AI calls to ai_calls.log and pipeline events
      (generation, export, store) to generation.log
    """
    log_dir = log_dir or get_settings().log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.CRITICAL)

    for logger_name in ["httpx", "httpcore", "asyncio", "PIL"]:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.WARNING)
        logger.propagate = False

    _route("ai_calls", _file_handler(log_dir / "ai_calls.log"))
    pipeline_handler = _file_handler(log_dir / "generation.log")
    for name in ("generation", "export", "store"):
        _route(name, pipeline_handler)


# Initialize logging on module import
setup_logging()

# Register all commands
register_commands()


def main() -> None:
    """CLI entry point."""
    app()
