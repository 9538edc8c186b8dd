"""
Logging setup for scripts and applications embedding the scanner.

The library modules only create loggers; handlers are configured here,
once, by the entry point.
"""

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """
    Configure root logging with a console handler and an optional file handler.

    Args:
        level: Logging level, as a number or a name such as "DEBUG".
        log_file: If given, log records are also appended to this file.
            Parent directories are created.
    """
    if isinstance(level, str):
        level = level.upper()

    handlers = [logging.StreamHandler()]
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
