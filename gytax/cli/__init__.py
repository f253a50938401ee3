"""Guyana Tax CLI."""
