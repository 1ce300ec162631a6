"""Logging setup for the CLI. Library code never configures handlers."""

import logging

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str | None) -> None:
    """Attach a stderr handler to the ``warble`` logger at *level*."""
    logger = logging.getLogger("warble")
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.setLevel((level or "info").upper())
