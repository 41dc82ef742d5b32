import logging
import sys

LOG_FORMAT = "%(levelname)s: %(message)s"


def setup_logging(debug: bool = False) -> logging.Logger:
    """
    Configure the package logger.

    Warnings and errors always go to stderr; debug output only with --debug.

    Args:
        debug: Enable debug logging

    Returns:
        The configured "shaws" logger
    """
    logger = logging.getLogger("shaws")
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.debug("Debug logging enabled")
    return logger
