"""Logging bootstrap for the ledger CLI and embedding applications."""

import logging
import sys

_HANDLER_NAME = "portfolio_ledger.stdout"
_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str | int = logging.INFO) -> logging.Handler:
    """Send ledger logs to stdout; calling again replaces the previous handler."""
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # engine echo and driver chatter drown out ledger events at INFO
    for noisy in ("sqlalchemy", "aiosqlite", "asyncpg"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return handler


__all__ = ["setup_logging"]
