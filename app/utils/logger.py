import logging
import sys
from typing import Optional

from app.config import settings


def setup_logger(name: str, level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Provides a configured logger instance."""
    logger = logging.getLogger(name)

    # Avoid duplicate logs if the logger is already setup
    if not logger.handlers:
        logger.setLevel(level.upper())

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


logger = setup_logger("telegram_relay", level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)
