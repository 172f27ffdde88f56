"""
Logging setup for the CryptoBreaker service.

Modules log through ``logging.getLogger(__name__)``; this module attaches a
Rich console handler to the package root logger once at start-up.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER_NAME = "cryptobreaker"

_LOG_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
    }
)


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Install a Rich console handler on the package logger.

    Calling it again only updates the level, so repeated application
    start-ups do not stack handlers.

    Args:
        level: Minimum severity name (DEBUG, INFO, WARNING, ...)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(theme=_LOG_THEME, stderr=True),
            show_path=False,
            show_time=True,
            rich_tracebacks=True,
            markup=False,
        )
        logger.addHandler(handler)
        logger.propagate = False

    for handler in logger.handlers:
        handler.setLevel(numeric_level)

    return logger
