"""Adapters - I/O implementations of ports."""

from .google_sheets import GoogleSheetsRowStore
from .json_store import JsonFileRowStore
from .google_calendar import GoogleCalendarAdapter
from .local_calendar import LocalCalendarAdapter

__all__ = [
    "GoogleSheetsRowStore",
    "JsonFileRowStore",
    "GoogleCalendarAdapter",
    "LocalCalendarAdapter",
]
