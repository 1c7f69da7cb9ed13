import logging
from typing import Optional

from rpg_mechanics.config import get_log_level


class EmojiFormatter(logging.Formatter):
    """Prefixes each record with an emoji for its level."""

    LEVEL_EMOJIS = {
        logging.DEBUG: "🐛",
        logging.INFO: "✅",
        logging.WARNING: "⚠️",
        logging.ERROR: "❌",
        logging.CRITICAL: "🔥",
    }

    def format(self, record):
        s = super().format(record)
        emoji = self.LEVEL_EMOJIS.get(record.levelno, "")
        return f"{emoji} {s}" if emoji else s


def setup_logging(level: Optional[int] = None) -> None:
    """
    Install a single console handler with the EmojiFormatter on the root logger.
    Call once from the entry point. The level defaults to RPG_LOG_LEVEL.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level if level is not None else get_log_level())

    console_handler = logging.StreamHandler()
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    console_handler.setFormatter(EmojiFormatter(log_format))

    # Avoid duplicate output when called twice
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.addHandler(console_handler)
