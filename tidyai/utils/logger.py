"""Настройка логирования"""
import logging
import sys
from pathlib import Path

from ..config import settings


def setup_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Структурированный логгер: консоль и, при необходимости, файл"""

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Не добавляем обработчики повторно
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.log_to_file:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(exist_ok=True)

        file_handler = logging.FileHandler(log_dir / "app.log", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Глобальный логгер
logger = setup_logger("tidyai", settings.log_level)
