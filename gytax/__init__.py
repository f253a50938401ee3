"""Guyana tax calculation and compliance engine."""

__version__ = "0.3.0"
