"""
Console logging for applications embedding securesession.

The library never attaches handlers on import. Records carry endpoint ids and
ratchet counters only, never plaintext or key material.
"""

import logging
from typing import IO, Optional

PACKAGE_LOGGER = "securesession"
HANDLER_NAME = "securesession-console"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(
    log_level: int = logging.INFO,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """
    Route the ``securesession`` logger to a stream.

    Calling it again replaces the console handler installed by a previous
    call, so the level and stream can be changed at runtime.

    Args:
        log_level: Level for the package logger and its handler
        stream: Target stream (default: stderr)

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(log_level)

    for existing in [h for h in logger.handlers if h.get_name() == HANDLER_NAME]:
        logger.removeHandler(existing)

    handler = logging.StreamHandler(stream)
    handler.set_name(HANDLER_NAME)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
