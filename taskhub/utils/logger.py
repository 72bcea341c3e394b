# taskhub/utils/logger.py
import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(level: str) -> int:
    return _LEVELS.get((level or "").upper(), logging.INFO)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package logger with a console handler.

    Module loggers (``logging.getLogger(__name__)``) under ``taskhub``
    propagate here, so this only needs to run once at startup.
    """
    logger = logging.getLogger("taskhub")
    log_level = get_log_level(level)
    logger.setLevel(log_level)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(console_handler)

    for handler in logger.handlers:
        handler.setLevel(log_level)

    return logger
