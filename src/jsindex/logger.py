import logging
import sys
from typing import TextIO

import structlog

structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(),
    ],
)

# Records from "jsindex" are handled by whatever the root logger has
_std_logger = logging.getLogger("jsindex")
_std_logger.setLevel(logging.NOTSET)
_std_logger.propagate = True

logger: structlog.BoundLogger = structlog.get_logger("jsindex")


def configure_logging(debug: bool = False, stream: TextIO | None = None) -> None:
    """
    Route indexer records to *stream* (stderr by default). Only warnings and
    errors are shown unless *debug* is set, since stdout may carry JSON.
    """
    level = logging.DEBUG if debug else logging.WARNING
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        for handler in root.handlers:
            handler.setLevel(level)
        return
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)


def file_logger(path: str) -> structlog.BoundLogger:
    """Logger whose events all carry the file identifier as ``path``."""
    return logger.bind(path=path)
