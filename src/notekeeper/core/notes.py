"""Pure note/catalog domain logic - no I/O dependencies."""

import re
from dataclasses import dataclass

NOTES_TABLE = "Notes"
CATEGORIES_TABLE = "Categories"
ROLES_TABLE = "Roles"
USERS_TABLE = "Users"

NOTES_HEADER = ["id", "date", "category", "content", "role", "startTime", "endTime", "eventId"]
CATEGORIES_HEADER = ["name", "color", "target"]
ROLES_HEADER = ["name", "target", "description"]
USERS_HEADER = ["username", "passwordHash"]

# Header occupies row 1, so the first data row is row 2.
FIRST_DATA_ROW = 2

DEFAULT_CATEGORY_TARGET = 10
DEFAULT_ROLE_TARGET = 5

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_target(raw, default: int) -> int:
    """Parse a monthly target cell, falling back to default.

    Leading digits win ("12 notes" -> 12). Empty, non-numeric and
    non-positive values use the default.
    """
    if isinstance(raw, int):
        value = raw
    else:
        match = _LEADING_INT.match(str(raw or ""))
        if not match:
            return default
        value = int(match.group(1))
    return value if value > 0 else default


def _cell(row: list, index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index])
    return ""


@dataclass
class Note:
    """A journal entry, one row in the Notes table."""

    id: str
    date: str
    category: str
    content: str
    role: str = ""
    start_time: str = ""
    end_time: str = ""
    event_id: str = ""
    row_index: int | None = None

    @property
    def is_calendar_eligible(self) -> bool:
        return bool(self.start_time and self.end_time)

    @property
    def is_synced(self) -> bool:
        return bool(self.event_id)

    def to_row(self) -> list[str]:
        return [
            self.id,
            self.date,
            self.category,
            self.content,
            self.role,
            self.start_time,
            self.end_time,
            self.event_id,
        ]

    @classmethod
    def from_row(cls, row: list, row_index: int | None = None) -> "Note":
        return cls(
            id=_cell(row, 0),
            date=_cell(row, 1),
            category=_cell(row, 2),
            content=_cell(row, 3),
            role=_cell(row, 4),
            start_time=_cell(row, 5),
            end_time=_cell(row, 6),
            event_id=_cell(row, 7),
            row_index=row_index,
        )

    def to_api(self) -> dict:
        return {
            "rowIndex": self.row_index,
            "id": self.id,
            "date": self.date,
            "category": self.category,
            "content": self.content,
            "role": self.role,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "eventId": self.event_id,
        }

    @classmethod
    def from_api(cls, data: dict) -> "Note":
        return cls(
            id=data.get("id", ""),
            date=data.get("date", ""),
            category=data.get("category", ""),
            content=data.get("content", ""),
            role=data.get("role") or "",
            start_time=data.get("startTime") or "",
            end_time=data.get("endTime") or "",
            event_id=data.get("eventId") or "",
            row_index=data.get("rowIndex"),
        )


@dataclass
class Category:
    name: str
    color: str = ""
    target: int = DEFAULT_CATEGORY_TARGET

    @classmethod
    def from_row(cls, row: list) -> "Category":
        return cls(
            name=_cell(row, 0),
            color=_cell(row, 1),
            target=parse_target(_cell(row, 2), DEFAULT_CATEGORY_TARGET),
        )

    def to_api(self) -> dict:
        return {"name": self.name, "color": self.color, "target": self.target}


@dataclass
class Role:
    name: str
    target: int = DEFAULT_ROLE_TARGET
    description: str = ""

    @classmethod
    def from_row(cls, row: list) -> "Role":
        return cls(
            name=_cell(row, 0),
            target=parse_target(_cell(row, 1), DEFAULT_ROLE_TARGET),
            description=_cell(row, 2),
        )

    def to_api(self) -> dict:
        return {"name": self.name, "target": self.target, "description": self.description}


def notes_from_rows(rows: list[list]) -> list[Note]:
    """Decode data rows (header already skipped) into notes with their row index."""
    return [Note.from_row(row, FIRST_DATA_ROW + i) for i, row in enumerate(rows)]


class NoteIndex:
    """Maps stable note ids to their current row index.

    Built from a single read; positions are only valid until the next
    append or delete.
    """

    def __init__(self, notes: list[Note]):
        self._by_row = {n.row_index: n for n in notes}
        self._by_id: dict[str, int] = {}
        for note in notes:
            # First occurrence wins if an id was ever duplicated
            if note.id and note.id not in self._by_id:
                self._by_id[note.id] = note.row_index

    def __len__(self) -> int:
        return len(self._by_row)

    def at(self, row_index: int) -> Note | None:
        return self._by_row.get(row_index)

    def position_of(self, note_id: str) -> int | None:
        return self._by_id.get(note_id)

    def resolve(self, row_index: int, note_id: str = "") -> Note | None:
        """Find the note the caller means.

        The row at row_index wins when it carries the expected id (or no id
        was given). Otherwise the id's current position is used.
        """
        note = self.at(row_index)
        if not note_id:
            return note
        if note and note.id == note_id:
            return note
        position = self.position_of(note_id)
        if position is None:
            return None
        return self.at(position)
