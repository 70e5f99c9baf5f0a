"""Project-wide logger configuration."""
import logging
import os
from typing import Union

LOGGER_NAME = "desk_calculator"
LOG_LEVEL_ENV = "DESK_CALCULATOR_LOG_LEVEL"
LOG_FORMAT = "[%(asctime)s] %(processName)s %(levelname)s: %(message)s"


def _build_logger() -> logging.Logger:
    """
    Create the shared project logger with a single stream handler.

    The level is read from the ``DESK_CALCULATOR_LOG_LEVEL`` environment variable
    and defaults to INFO.

    :return: Configured logger
    :rtype: logging.Logger
    """
    project_logger = logging.getLogger(LOGGER_NAME)
    if not project_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        project_logger.addHandler(handler)
    level_name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    project_logger.setLevel(logging.getLevelNamesMapping().get(level_name, logging.INFO))
    return project_logger


def set_log_level(level: Union[str, int]) -> None:
    """
    Change the level of the project logger.

    :param level: Level name (e.g. ``"DEBUG"``) or numeric level
    :raises ValueError: If the level name is unknown
    """
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)


logger: logging.Logger = _build_logger()
