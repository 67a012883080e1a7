"""Console and file logging for pvedeploy.

Module loggers carry no level of their own; the ``pvedeploy`` package logger
decides what gets through, so ``setup_file_logging(verbose=True)`` turns on
debug output everywhere at once.
"""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

PACKAGE_LOGGER = "pvedeploy"
LOG_FILE = Path("/var/log/pvedeploy/pvedeploy.log")
FALLBACK_LOG_FILE = Path("/tmp/pvedeploy/pvedeploy.log")

_file_handler: Optional[logging.FileHandler] = None


def _package_logger() -> logging.Logger:
    package = logging.getLogger(PACKAGE_LOGGER)
    if package.level == logging.NOTSET:
        package.setLevel(logging.INFO)
    return package


def _open_log_file(path: Path) -> logging.FileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path)


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Send pvedeploy log records to a file as well as the console.

    Args:
        log_file: Log file path (default /var/log/pvedeploy/pvedeploy.log)
        verbose: Log debug records too

    Returns:
        The file actually written, FALLBACK_LOG_FILE when the requested one
        cannot be opened
    """
    global _file_handler

    package = _package_logger()
    package.setLevel(logging.DEBUG if verbose else logging.INFO)
    if _file_handler is not None:
        return Path(_file_handler.baseFilename)

    target = Path(log_file) if log_file else LOG_FILE
    try:
        handler = _open_log_file(target)
    except OSError as e:
        console.print(f"[yellow]Cannot write {target} ({e}), logging to {FALLBACK_LOG_FILE}[/yellow]")
        target = FALLBACK_LOG_FILE
        handler = _open_log_file(target)

    handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    package.addHandler(handler)
    _file_handler = handler

    package.info(f"pvedeploy logging initialized: {target}")
    return target


def close_file_logging() -> None:
    """Detach and close the file handler, if any."""
    global _file_handler

    if _file_handler is None:
        return
    logging.getLogger(PACKAGE_LOGGER).removeHandler(_file_handler)
    _file_handler.close()
    _file_handler = None


def get_logger(name: str) -> logging.Logger:
    """Module logger with Rich console output; its level follows the package logger."""
    _package_logger()
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger
