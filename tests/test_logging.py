from __future__ import annotations

import logging
import sys
from collections.abc import Iterator

import pytest
import structlog

from untis_client.logging import setup_logging


@pytest.fixture()
def root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


def test_single_stderr_handler(root_logger: logging.Logger) -> None:
    setup_logging(log_level="debug")
    setup_logging(log_level="WARNING")

    assert len(root_logger.handlers) == 1
    handler = root_logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stderr
    assert handler.formatter._fmt == "%(message)s"
    assert root_logger.level == logging.WARNING


def test_unknown_level_falls_back_to_info(root_logger: logging.Logger) -> None:
    setup_logging(json_output=True, log_level="chatty")

    assert root_logger.level == logging.INFO
