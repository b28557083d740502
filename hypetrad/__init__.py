"""Hypetrad - paper-trading simulator with a lot-level ledger and trade journal."""

__version__ = "1.0.0"
