import logging
import sys

from .settings import settings


logging_formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s")

handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(logging_formatter)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(settings.log_level)
    if handler not in logger.handlers:
        logger.addHandler(handler)
    return logger
