"""Logging set-up for command-line entry points."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: int = logging.INFO, *, force: bool = False) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, force=force)
