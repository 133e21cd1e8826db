import logging
import sys

LOGGER_NAME = "campushub"


def setup_logger(level: str = "INFO") -> logging.Logger:
    """Configure the `campushub` logger tree to write to stdout."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    # avoid duplicate handlers when the app factory runs more than once
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s", datefmt="%H:%M:%S"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
