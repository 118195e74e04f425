"""Ports - interfaces/protocols for external dependencies."""

from .row_store import RowStore
from .calendar_repo import CalendarRepository

__all__ = [
    "RowStore",
    "CalendarRepository",
]
