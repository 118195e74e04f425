"""Functional core - pure business logic with no I/O."""

from .notes import Category, Note, NoteIndex, Role, notes_from_rows, parse_target
from .sync import CalendarAction, CalendarEvent, build_event, plan_calendar_action, recurrence_rule
from .stats import StatLine, aggregate, category_stats, current_month, role_stats

__all__ = [
    # Notes
    "Note",
    "NoteIndex",
    "Category",
    "Role",
    "notes_from_rows",
    "parse_target",
    # Sync
    "CalendarAction",
    "CalendarEvent",
    "build_event",
    "plan_calendar_action",
    "recurrence_rule",
    # Stats
    "StatLine",
    "aggregate",
    "category_stats",
    "role_stats",
    "current_month",
]
