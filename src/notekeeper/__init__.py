"""Notekeeper - a note tracker with goal statistics and calendar sync."""

__version__ = "0.1.0"
