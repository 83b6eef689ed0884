"""Checkout Inspector — payment SDK integration health scanner."""

__version__ = "0.1.0"
