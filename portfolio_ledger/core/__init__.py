"""Configuration, logging and telemetry helpers."""

from .config import LedgerSettings, get_settings

__all__ = ["LedgerSettings", "get_settings"]
