"""
PairWeaver v0.1.0

Logging setup for command-line use. Library modules only create
module-level loggers; handlers are attached here.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%H:%M:%S'


def setup_logging(level: Union[str, int] = 'INFO', log_file: Optional[Union[str, Path]] = None):
    """
    Configure the root logger.

    An already configured root logger keeps its handlers; only its level is
    updated and a handler for *log_file* is added if it has none yet.

    Args:
        level: Level name ('DEBUG', 'INFO', ...) or numeric level
        log_file: Also write records to this file when given
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        if log_file and not _has_file_handler(root, log_file):
            handler = logging.FileHandler(log_file)
            handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(handler)
        return

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
    )


def _has_file_handler(logger: logging.Logger, log_file: Union[str, Path]) -> bool:
    path = os.path.abspath(log_file)
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == path
        for handler in logger.handlers
    )
