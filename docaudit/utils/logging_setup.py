"""Loguru sink configuration shared by the CLI and long-running callers."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from docaudit.utils.config import LoggingConfig

TEXT_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> | <level>{message}</level>"
)


def setup_logging(config: LoggingConfig | None = None, *, verbose: bool = False) -> None:
    """Replace Loguru's default sink according to ``config``.

    ``verbose`` forces DEBUG on the console sink regardless of the configured level.
    """
    config = config or LoggingConfig()
    level = "DEBUG" if verbose else config.level.upper()
    serialize = config.format == "json"

    logger.remove()
    if serialize:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=TEXT_FORMAT)

    if config.file:
        target = Path(config.file)
        target.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(target),
            level=level,
            rotation=config.rotation,
            retention=config.retention,
            serialize=serialize,
        )
