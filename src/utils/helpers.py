import logging
import sys

from src.config import DEFAULT_LOG_LEVEL


def setup_logging(logger_name, log_file=None, level=DEFAULT_LOG_LEVEL):
    """Configure logging to console and optionally to a file"""

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Create logger
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (DEBUG and above)
    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(logger_name):
    existing_logger = logging.getLogger(logger_name)
    if not existing_logger.handlers:  # Check if handlers already exist
        return setup_logging(logger_name)
    return existing_logger
