import logging

import structlog

from tokenswap.logging_config import setup_logging


def test_setup_logging_routes_root_through_structlog():
    setup_logging("DEBUG")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_unknown_level_falls_back_to_info():
    setup_logging("LOUD", json_logs=True)

    assert logging.getLogger().level == logging.INFO
