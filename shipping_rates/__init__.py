"""Shipping rate computation service: postal code lookup and delivery quotes."""

__version__ = "1.0.0"
