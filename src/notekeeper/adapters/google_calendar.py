"""Google Calendar API adapter."""

import logging

from notekeeper.core.sync import CalendarEvent
from notekeeper.errors import CalendarSyncError

from .google_auth import build_service

logger = logging.getLogger(__name__)


class GoogleCalendarAdapter:
    """
    Mirrors notes as events on a Google Calendar via the API.

    Implements CalendarRepository protocol. No sync decisions here - just I/O.
    """

    def __init__(self, credentials_file: str = "credentials.json", calendar_id: str = "primary", service=None):
        self.credentials_file = credentials_file
        self.calendar_id = calendar_id
        self._service = service

    def _build_service(self):
        """Build the Calendar API service on first use."""
        if self._service is None:
            self._service = build_service("calendar", "v3", self.credentials_file)
        return self._service

    def insert(self, event: CalendarEvent) -> str:
        """Create an event and return its id."""
        try:
            result = (
                self._build_service()
                .events()
                .insert(calendarId=self.calendar_id, body=event.to_api())
                .execute()
            )
        except Exception as e:
            raise CalendarSyncError(f"Calendar insert failed: {e}") from e

        event_id = result.get("id", "")
        if not event_id:
            raise CalendarSyncError("Calendar insert returned no event id")
        logger.info(f"Calendar event created: {event_id}")
        return event_id

    def update(self, event_id: str, event: CalendarEvent) -> None:
        """Patch an existing event. Fields left out of the body, such as recurrence, are kept."""
        try:
            (
                self._build_service()
                .events()
                .patch(calendarId=self.calendar_id, eventId=event_id, body=event.to_api())
                .execute()
            )
        except Exception as e:
            raise CalendarSyncError(f"Calendar update failed for {event_id}: {e}") from e
        logger.info(f"Calendar event updated: {event_id}")

    def delete(self, event_id: str) -> None:
        """Delete an event."""
        try:
            (
                self._build_service()
                .events()
                .delete(calendarId=self.calendar_id, eventId=event_id)
                .execute()
            )
        except Exception as e:
            raise CalendarSyncError(f"Calendar delete failed for {event_id}: {e}") from e
        logger.info(f"Calendar event deleted: {event_id}")
