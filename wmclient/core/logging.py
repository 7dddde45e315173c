"""Logger factory shared by the client modules."""

from __future__ import annotations

import logging

__all__ = ["get_logger", "ROOT_LOGGER_NAME"]

ROOT_LOGGER_NAME = "wmclient"

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced below ``wmclient``."""

    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
