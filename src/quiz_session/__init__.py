"""Timed multiple-choice quiz session engine."""

__version__ = "0.1.0"
