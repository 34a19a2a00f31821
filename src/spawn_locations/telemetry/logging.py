"""Logging setup for the CLI and embedding processes."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO") -> None:
    """Route ``spawn_locations.*`` loggers to stderr through a rich handler."""
    logger = logging.getLogger("spawn_locations")
    logger.setLevel(level.upper())
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False))
    logger.propagate = False
