"""In-memory calendar adapter for local development."""

import logging
import random
import time
from dataclasses import replace

from notekeeper.core.sync import CalendarEvent

logger = logging.getLogger(__name__)


class LocalCalendarAdapter:
    """
    Fake calendar that logs every call and keeps events in memory.

    Implements CalendarRepository protocol. Ids that survive a restart in the
    local database are unknown here, so update and delete always succeed.
    """

    def __init__(self):
        self.events: dict[str, CalendarEvent] = {}

    def _new_id(self) -> str:
        return f"mock_event_{int(time.time() * 1000)}_{random.randint(0, 999)}"

    def insert(self, event: CalendarEvent) -> str:
        event_id = self._new_id()
        while event_id in self.events:
            event_id = self._new_id()
        self.events[event_id] = event
        logger.info(f"[MockCalendar] Event created: {event.summary!r} {event.start} ~ {event.end}")
        return event_id

    def update(self, event_id: str, event: CalendarEvent) -> None:
        previous = self.events.get(event_id)
        if previous is not None and not event.recurrence:
            event = replace(event, recurrence=list(previous.recurrence))
        self.events[event_id] = event
        logger.info(f"[MockCalendar] Event updated: {event_id} -> {event.summary!r}")

    def delete(self, event_id: str) -> None:
        self.events.pop(event_id, None)
        logger.info(f"[MockCalendar] Event deleted: {event_id}")
