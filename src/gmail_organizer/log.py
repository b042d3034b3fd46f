"""Logging setup: module loggers routed through the shared Rich console."""

from __future__ import annotations

import logging
import os

from rich.logging import RichHandler

from .constants import LOG_LEVEL_ENV
from .display import console

_ROOT_LOGGER_NAME = "gmail_organizer"
_HANDLER_ATTACHED = False


def _resolve_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _attach_handler() -> None:
    global _HANDLER_ATTACHED

    if _HANDLER_ATTACHED:
        return
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.addHandler(handler)
    root.setLevel(_resolve_level())
    _HANDLER_ATTACHED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package root, attaching the Rich handler once."""
    _attach_handler()
    if not name.startswith(_ROOT_LOGGER_NAME):
        name = f"{_ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_verbose(verbose: bool) -> None:
    """Switch the package loggers between DEBUG and the configured level."""
    _attach_handler()
    level = logging.DEBUG if verbose else _resolve_level()
    logging.getLogger(_ROOT_LOGGER_NAME).setLevel(level)
