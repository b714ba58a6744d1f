"""Portfolio transaction ledger with FIFO position and income calculation."""

__version__ = "0.1.0"
