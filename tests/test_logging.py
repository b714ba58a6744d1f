import logging

from portfolio_ledger.core.logging import setup_logging


def test_setup_logging_is_repeatable():
    root = logging.getLogger()
    previous_level = root.level
    first = setup_logging("DEBUG")
    second = setup_logging(logging.WARNING)
    try:
        assert first not in root.handlers
        assert second in root.handlers
        assert root.level == logging.WARNING
        assert logging.getLogger("sqlalchemy").level == logging.WARNING
    finally:
        root.removeHandler(second)
        root.setLevel(previous_level)
