"""Logging setup for the CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(debug: bool = False) -> None:
    """Route the ``shelly`` logger through rich on stderr.

    Args:
        debug: Log at DEBUG level instead of WARNING
    """
    logger = logging.getLogger("shelly")
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)

    # Repeated invocations (tests, nested contexts) must not stack handlers
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=debug,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
