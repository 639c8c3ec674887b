"""Logging setup with rich output for the command-line tools.

Library modules only call ``logging.getLogger(__name__)``; the CLI entry
points call :func:`setup_logging` once. Log records go to stderr so JSON
output on stdout stays machine-readable.

Usage:
    from mdd_validate.log import setup_logging

    setup_logging(level="DEBUG")
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# Log output shares stderr with error messages, never stdout
console = Console(stderr=True)


def setup_logging(level: str = "WARNING") -> None:
    """Configure the root logger with a rich handler.

    Args:
        level: Default logging level; the LOG_LEVEL environment variable wins
    """
    level = os.getenv("LOG_LEVEL", level).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    rich_handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(rich_handler)
