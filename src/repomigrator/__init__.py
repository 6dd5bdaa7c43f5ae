"""Bulk repository migration with token-budgeted strategy generation."""

__version__ = "0.1.0"
