"""Logging setup with rich console output.

Call `setup_logging` once from the CLI entry point; modules log through
``logging.getLogger(__name__)`` as usual.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

# User-facing output (progress, tables, panels)
console = Console()
# Log records go to stderr, apart from the results on stdout
err_console = Console(stderr=True)

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    debug: bool = False,
    log_file: Path | None = None,
    console: Console = err_console,
) -> None:
    """Configure the root logger.

    Args:
        debug: Log at DEBUG level instead of INFO
        log_file: Optional file that also receives every log line
        console: Console the rich handler writes to
    """
    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    rich_handler = RichHandler(
        console=console,
        show_time=debug,
        show_path=debug,
        rich_tracebacks=True,
        markup=False,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(rich_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
        root_logger.addHandler(file_handler)

    # Stray library warnings go through the same handlers
    logging.captureWarnings(True)
