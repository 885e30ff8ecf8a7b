import logging

import structlog

from jsindex.logger import configure_logging, file_logger


def test_file_logger_binds_path():
    log = file_logger("lib/a.js")
    assert structlog.get_context(log) == {"path": "lib/a.js"}


def test_configure_logging_levels():
    root = logging.getLogger()
    level = root.level
    try:
        configure_logging(debug=True)
        assert root.level == logging.DEBUG
        configure_logging(debug=False)
        assert root.level == logging.WARNING
    finally:
        root.setLevel(level)
