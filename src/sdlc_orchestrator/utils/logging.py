"""Logging setup for the command line."""

import logging

from sdlc_orchestrator.constants import LOG_DATE_FORMAT, LOG_FORMAT


def setup_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
