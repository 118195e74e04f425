"""Pure note/calendar synchronization decisions - no I/O dependencies."""

from dataclasses import dataclass, field
from enum import Enum

from .notes import Note

RECURRENCE_FREQUENCIES = ("DAILY", "WEEKLY", "MONTHLY", "YEARLY")
SUMMARY_CONTENT_CHARS = 20


class CalendarAction(Enum):
    """What to do to the mirrored calendar event."""

    NONE = "none"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def wants_sync(sync_requested: bool, start_time: str, end_time: str) -> bool:
    """A note is mirrored only when asked to and both times are present."""
    return bool(sync_requested and start_time and end_time)


def plan_calendar_action(existing_event_id: str, sync_requested: bool, start_time: str, end_time: str) -> CalendarAction:
    """
    Decide the calendar transition for a note.

    | existing id | wants sync | action |
    |-------------|------------|--------|
    | empty       | yes        | INSERT |
    | empty       | no         | NONE   |
    | present     | yes        | UPDATE |
    | present     | no         | DELETE |
    """
    want = wants_sync(sync_requested, start_time, end_time)
    if existing_event_id:
        return CalendarAction.UPDATE if want else CalendarAction.DELETE
    return CalendarAction.INSERT if want else CalendarAction.NONE


def normalize_recurrence(recurrence: str | None) -> str:
    """Return the upper-case frequency, or "" for no repetition."""
    if not recurrence or recurrence.strip().lower() == "none":
        return ""
    freq = recurrence.strip().upper()
    if freq not in RECURRENCE_FREQUENCIES:
        raise ValueError(f"Unsupported recurrence: {recurrence}")
    return freq


def recurrence_rule(recurrence: str | None) -> list[str]:
    """Translate a repeat option into an RFC 5545 recurrence list."""
    freq = normalize_recurrence(recurrence)
    return [f"RRULE:FREQ={freq}"] if freq else []


@dataclass
class CalendarEvent:
    """A timed calendar event mirroring a note."""

    summary: str
    description: str
    start: str
    end: str
    timezone: str
    recurrence: list[str] = field(default_factory=list)

    def to_api(self) -> dict:
        """Serialize to a Google Calendar event resource."""
        body = {
            "summary": self.summary,
            "description": self.description,
            "start": {"dateTime": self.start, "timeZone": self.timezone},
            "end": {"dateTime": self.end, "timeZone": self.timezone},
        }
        if self.recurrence:
            body["recurrence"] = list(self.recurrence)
        return body


def event_summary(note: Note) -> str:
    role_part = f"{note.role}-" if note.role else ""
    return f"[{note.category}] {role_part}{note.content[:SUMMARY_CONTENT_CHARS]}..."


def build_event(note: Note, timezone: str, recurrence: str | None = None) -> CalendarEvent:
    """Build the calendar event for a calendar-eligible note."""
    return CalendarEvent(
        summary=event_summary(note),
        description=note.content,
        start=f"{note.date}T{note.start_time}:00",
        end=f"{note.date}T{note.end_time}:00",
        timezone=timezone,
        recurrence=recurrence_rule(recurrence),
    )
