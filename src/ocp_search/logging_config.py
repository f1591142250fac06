"""Logging setup for the ocp_search package.

Every module obtains its logger with ``get_logger(__name__)``; all of them sit
under the ``ocp_search`` namespace so a single handler covers the package.
"""
from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_ROOT_NAME = "ocp_search"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to the package logger.

    Safe to call repeatedly; the handler is only installed once.

    Args:
        level: Log level applied to the ``ocp_search`` namespace.

    Returns:
        The package root logger.
    """
    root = logging.getLogger(_ROOT_NAME)
    if root.handlers:
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child logger of the ``ocp_search`` namespace."""
    if not name.startswith(_ROOT_NAME):
        name = f"{_ROOT_NAME}.{name}"
    return logging.getLogger(name)
