"""
Runtime settings read from the environment.

The entry point loads a `.env` file with python-dotenv before anything here is
called, so values are read lazily on each access.
"""

import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_MAX_EXPRESSION_LENGTH = 1000
DEFAULT_LOG_LEVEL = "INFO"


def get_max_expression_length() -> int:
    """Longest expression the evaluator will accept, in characters."""
    raw = os.environ.get("RPG_MAX_EXPRESSION_LENGTH")
    if not raw:
        return DEFAULT_MAX_EXPRESSION_LENGTH
    try:
        value = int(raw)
    except ValueError:
        logger.warning(
            f"Ignoring non-integer RPG_MAX_EXPRESSION_LENGTH '{raw}', using {DEFAULT_MAX_EXPRESSION_LENGTH}"
        )
        return DEFAULT_MAX_EXPRESSION_LENGTH
    return value if value > 0 else DEFAULT_MAX_EXPRESSION_LENGTH


def get_log_level() -> int:
    name = os.environ.get("RPG_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        return logging.INFO
    return level
