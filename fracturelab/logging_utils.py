"""
Logging setup shared by the Streamlit app and its services.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("urllib3", "PIL", "watchdog")


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def setup_logging(
    log_dir: Optional[Union[str, Path]] = None,
    name: str = "fracturelab",
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Set up logging for the application.

    Always logs to the console; also logs to a timestamped file when a log
    directory is given.

    Args:
        log_dir: Directory for log files (None for console only)
        name: Logger name; modules log through children of it
        level: Logging level

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Streamlit reruns the script, so clear existing handlers
    logger.handlers = []
    logger.addHandler(_handler(logging.StreamHandler(), level, CONSOLE_FORMAT))

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        logger.addHandler(_handler(logging.FileHandler(log_file), level, FILE_FORMAT))

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
