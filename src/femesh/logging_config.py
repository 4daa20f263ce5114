"""
Logging Configuration
Sets up the 'femesh' logger for command line runs.

Records go to stderr, so mesh summaries printed on stdout stay clean.
Library code only creates module loggers and never configures handlers.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

CONSOLE_FORMAT = '%(levelname)s - %(name)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configures the logger of the 'femesh' namespace.

    Args:
        level: Logging level, either a number (e.g. logging.DEBUG) or its name ("DEBUG").
        log_file: Optional path to save logs to a file. The file is overwritten.

    Returns:
        The configured package logger.

    Raises:
        ValueError: If ``level`` is an unknown level name.
    """
    if isinstance(level, str):
        numeric_level = logging.getLevelName(level.upper())
        if not isinstance(numeric_level, int):
            raise ValueError(f"Unknown logging level '{level}'.")
        level = numeric_level

    logger = logging.getLogger("femesh")
    logger.setLevel(level)

    # Avoid duplicate records when the CLI is invoked repeatedly in one process
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized at level {logging.getLevelName(level)}.")
    return logger
