"""Collateralized borrowing and risk engine for tokenized real-world assets."""

__version__ = "0.1.0"
