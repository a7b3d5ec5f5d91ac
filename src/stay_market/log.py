"""loguru sink setup for the CLI."""

import sys

from loguru import logger


def setup_logging(debug: bool = False) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level="DEBUG" if debug else "INFO",
        colorize=True,
    )
