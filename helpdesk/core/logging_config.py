import logging
import sys


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Sets up the application logger with a single stdout handler.
    """
    logger = logging.getLogger("helpdesk")
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    return logger


logger = setup_logging()
