"""Logging for folio runs.

One Rich handler on stderr, owned by folio, so stdout stays free for the
CLI tables. The level is chosen per run from the command line and falls back
to ``FOLIO_LOG_LEVEL``. Python warnings raised by libraries are routed through
the same handler.
"""

from __future__ import annotations

import logging
import os
from typing import Final

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["configure_logging", "console", "level_for"]

LOG_LEVEL_ENV: Final[str] = "FOLIO_LOG_LEVEL"
DEFAULT_LEVEL: Final[int] = logging.INFO

# Libraries that log every parse step at DEBUG.
_CHATTY_LIBRARIES: Final[tuple[str, ...]] = ("markdown_it",)

console = Console(stderr=True)


class _FolioHandler(RichHandler):
    """Marker subclass so repeated setup finds the handler it installed."""


def level_for(verbose: int = 0, quiet: bool = False) -> int | None:
    """Map the CLI verbosity flags to a level; ``None`` defers to the environment."""
    if quiet:
        return logging.WARNING
    if verbose:
        return logging.DEBUG
    return None


def _environment_level() -> int:
    name = os.getenv(LOG_LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else DEFAULT_LEVEL
    return level if isinstance(level, int) else DEFAULT_LEVEL


def configure_logging(level: int | str | None = None, *, debug_libraries: bool = False) -> None:
    """Install the folio handler once and set this run's level.

    Args:
        level: A level number or name. ``None`` reads ``FOLIO_LOG_LEVEL``.
        debug_libraries: Let third-party loggers through at the run level
            instead of holding them at WARNING.

    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if not isinstance(level, int):
        level = _environment_level()

    root_logger = logging.getLogger()
    if not any(isinstance(handler, _FolioHandler) for handler in root_logger.handlers):
        root_logger.handlers.clear()
        handler = _FolioHandler(console=console, rich_tracebacks=True, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    library_level = level if debug_libraries else max(level, logging.WARNING)
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)
    logging.captureWarnings(True)
