from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def configure_logging(debug: bool = False) -> logging.Logger:
    """Attach a console handler to the `emitter` logger hierarchy.

    Calling it again only adjusts the level, so repeated CLI invocations in
    one process do not duplicate output.
    """
    level = logging.DEBUG if debug else logging.INFO
    logger = logging.getLogger("emitter")
    logger.setLevel(level)
    for handler in logger.handlers:
        if getattr(handler, "_emitter_console", False):
            handler.setLevel(level)
            return logger

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    console._emitter_console = True
    logger.addHandler(console)
    return logger
