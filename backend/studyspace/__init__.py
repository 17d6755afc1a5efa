"""Seat booking engine and API for multi-tenant study spaces."""

__version__ = "1.0.0"
