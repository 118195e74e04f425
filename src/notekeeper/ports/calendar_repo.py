"""Calendar repository interface."""

from typing import Protocol

from notekeeper.core.sync import CalendarEvent


class CalendarRepository(Protocol):
    """Interface for mirroring notes as events on any calendar backend.

    Every method raises CalendarSyncError on failure.
    """

    def insert(self, event: CalendarEvent) -> str:
        """Create an event and return its id."""
        ...

    def update(self, event_id: str, event: CalendarEvent) -> None:
        """Change an existing event in place, keeping its recurrence if the new event has none."""
        ...

    def delete(self, event_id: str) -> None:
        """Delete an event."""
        ...
