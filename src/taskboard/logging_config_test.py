import io
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from taskboard.logging_config import configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_installs_single_rich_handler(restore_root_logger):
    configure_logging("DEBUG")
    configure_logging("DEBUG")

    assert len(restore_root_logger.handlers) == 1
    assert isinstance(restore_root_logger.handlers[0], RichHandler)
    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("psycopg.pool").level == logging.WARNING


def test_records_reach_console(restore_root_logger):
    buffer = io.StringIO()
    configure_logging("INFO", console=Console(file=buffer, width=200))

    logging.getLogger("taskboard.db").info("Connected to the database taskboard")

    assert "taskboard.db: Connected to the database taskboard" in buffer.getvalue()
