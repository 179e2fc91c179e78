import logging
import os
import sys
from typing import Union

ENV_LOG_LEVEL = "HORIZON_LOG_LEVEL"
PACKAGE_LOGGER = "horizonsave"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s: %(message)s"


def resolve_level(level: Union[int, str], default: int = logging.INFO) -> int:
    """Accept a numeric level or a level name such as ``"debug"``."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else default


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Send ``horizonsave`` log records to stderr, keeping stdout for command output.

    HORIZON_LOG_LEVEL wins over ``level`` when set. Calling this again
    replaces the handler instead of stacking another one.
    """
    level = resolve_level(os.getenv(ENV_LOG_LEVEL) or level)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S"))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.addHandler(handler)
    return logger
