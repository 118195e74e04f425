"""Service layer between the REST API and the row store / calendar adapters.

NoteService keeps each note's stored eventId in step with the calendar:
calendar calls are best-effort and never block persisting the note, while a
failed store write after a successful calendar insert is compensated by
deleting the new event.
"""

import logging
import uuid

from .core.notes import (
    CATEGORIES_TABLE,
    NOTES_TABLE,
    ROLES_TABLE,
    Category,
    Note,
    NoteIndex,
    Role,
    notes_from_rows,
)
from .core.sync import CalendarAction, build_event, plan_calendar_action
from .errors import CalendarSyncError, NoteNotFoundError, RemoteStoreError
from .ports import CalendarRepository, RowStore

logger = logging.getLogger(__name__)


def new_note_id() -> str:
    return uuid.uuid4().hex


class CatalogService:
    """Read-only access to the Categories and Roles tables."""

    def __init__(self, store: RowStore):
        self.store = store

    def categories(self) -> list[Category]:
        return [Category.from_row(r) for r in self.store.read(CATEGORIES_TABLE) if r and r[0]]

    def roles(self) -> list[Role]:
        return [Role.from_row(r) for r in self.store.read(ROLES_TABLE) if r and r[0]]


class NoteService:
    """Create, update and delete notes, mirroring timed ones to a calendar."""

    def __init__(self, store: RowStore, calendar: CalendarRepository, timezone: str = "Asia/Taipei"):
        self.store = store
        self.calendar = calendar
        self.timezone = timezone

    def list_notes(self) -> list[Note]:
        """All notes in table order, each with its current row index."""
        return notes_from_rows(self.store.read(NOTES_TABLE))

    def _resolve(self, row_index: int, note_id: str = "") -> Note:
        index = NoteIndex(self.list_notes())
        note = index.resolve(row_index, note_id)
        if note is None:
            raise NoteNotFoundError(f"Note not found at row {row_index}")
        if note.row_index != row_index:
            logger.warning(f"Note {note_id} moved from row {row_index} to row {note.row_index}")
        return note

    def _compensate_insert(self, event_id: str, note_id: str) -> None:
        """Undo a calendar insert whose note could not be stored."""
        try:
            self.calendar.delete(event_id)
            logger.info(f"Rolled back calendar event {event_id} for unsaved note {note_id}")
        except CalendarSyncError as e:
            logger.error(f"Irreconcilable: calendar event {event_id} has no note ({note_id}): {e}")

    def create(self, note: Note, sync_to_calendar: bool = False, recurrence: str | None = None) -> Note:
        """
        Append a note, inserting a calendar event first when requested.

        A failed calendar insert still saves the note with an empty eventId.
        """
        if not note.id:
            note.id = new_note_id()
        note.event_id = ""

        action = plan_calendar_action("", sync_to_calendar, note.start_time, note.end_time)
        if action is CalendarAction.INSERT:
            try:
                note.event_id = self.calendar.insert(build_event(note, self.timezone, recurrence))
            except CalendarSyncError as e:
                logger.warning(f"Calendar sync failed for new note {note.id}: {e}")

        try:
            self.store.append(NOTES_TABLE, note.to_row())
        except RemoteStoreError:
            if note.event_id:
                self._compensate_insert(note.event_id, note.id)
            raise

        logger.info(f"Created note {note.id} (eventId={note.event_id or '-'})")
        return note

    def update(self, row_index: int, note: Note, sync_to_calendar: bool = False) -> Note:
        """
        Overwrite a note's row, moving its calendar event to match.

        The stored eventId is read first, in its own round-trip. Recurrence
        set at creation is left untouched.
        """
        stored = self._resolve(row_index, note.id)
        if not note.id:
            note.id = stored.id

        existing_id = stored.event_id
        final_id = existing_id
        action = plan_calendar_action(existing_id, sync_to_calendar, note.start_time, note.end_time)
        calendar_changed = False

        if action is CalendarAction.INSERT:
            try:
                final_id = self.calendar.insert(build_event(note, self.timezone))
                calendar_changed = True
            except CalendarSyncError as e:
                logger.warning(f"Calendar insert failed for note {note.id}: {e}")
        elif action is CalendarAction.UPDATE:
            try:
                self.calendar.update(existing_id, build_event(note, self.timezone))
                calendar_changed = True
            except CalendarSyncError as e:
                logger.warning(f"Calendar update failed for note {note.id}: {e}")
        elif action is CalendarAction.DELETE:
            try:
                self.calendar.delete(existing_id)
                final_id = ""
                calendar_changed = True
            except CalendarSyncError as e:
                # Event is still believed to exist, keep its id
                logger.warning(f"Calendar delete failed for note {note.id}: {e}")

        note.event_id = final_id
        try:
            self.store.update(NOTES_TABLE, stored.row_index, note.to_row())
        except RemoteStoreError:
            if action is CalendarAction.INSERT and calendar_changed:
                self._compensate_insert(final_id, note.id)
            elif calendar_changed:
                logger.error(
                    f"Irreconcilable: calendar {action.value} of {existing_id} applied "
                    f"but note {note.id} at row {stored.row_index} was not updated"
                )
            raise

        note.row_index = stored.row_index
        logger.info(f"Updated note {note.id} at row {stored.row_index} (calendar: {action.value})")
        return note

    def delete(self, row_index: int, note_id: str = "") -> Note:
        """
        Remove a note's row, deleting its calendar event first.

        The row is removed even if the calendar delete fails; the event is
        then orphaned.
        """
        stored = self._resolve(row_index, note_id)

        calendar_changed = False
        if stored.event_id:
            try:
                self.calendar.delete(stored.event_id)
                calendar_changed = True
            except CalendarSyncError as e:
                logger.warning(f"Calendar delete failed, event {stored.event_id} orphaned: {e}")

        try:
            self.store.clear(NOTES_TABLE, stored.row_index)
        except RemoteStoreError:
            if calendar_changed:
                logger.error(
                    f"Irreconcilable: calendar event {stored.event_id} deleted "
                    f"but note {stored.id} at row {stored.row_index} was not removed"
                )
            raise

        logger.info(f"Deleted note {stored.id} from row {stored.row_index}")
        return stored
