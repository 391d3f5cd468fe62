"""Investment ledger and dividend attribution engine."""

__version__ = "0.1.0"
