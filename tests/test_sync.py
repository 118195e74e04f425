"""Tests for pure calendar synchronization decisions."""

import pytest

from notekeeper.core.notes import Note
from notekeeper.core.sync import (
    CalendarAction,
    build_event,
    normalize_recurrence,
    plan_calendar_action,
    recurrence_rule,
)


class TestPlanCalendarAction:
    @pytest.mark.parametrize(
        "existing,sync,start,end,expected",
        [
            ("", True, "09:00", "10:00", CalendarAction.INSERT),
            ("", False, "09:00", "10:00", CalendarAction.NONE),
            ("", True, "09:00", "", CalendarAction.NONE),
            ("evt", True, "09:00", "10:00", CalendarAction.UPDATE),
            ("evt", False, "09:00", "10:00", CalendarAction.DELETE),
            ("evt", True, "", "", CalendarAction.DELETE),
        ],
    )
    def test_transition_table(self, existing, sync, start, end, expected):
        assert plan_calendar_action(existing, sync, start, end) is expected


class TestRecurrence:
    def test_none_means_no_rule(self):
        assert recurrence_rule("none") == []
        assert recurrence_rule(None) == []
        assert recurrence_rule("") == []

    def test_weekly(self):
        assert recurrence_rule("weekly") == ["RRULE:FREQ=WEEKLY"]

    def test_unknown_rejected(self):
        with pytest.raises(ValueError):
            normalize_recurrence("HOURLY")


class TestBuildEvent:
    @pytest.fixture
    def note(self):
        return Note(
            id="n1",
            date="2024-05-01",
            category="工作",
            content="Quarterly planning with the whole team",
            role="Lead",
            start_time="09:00",
            end_time="10:30",
        )

    def test_summary_has_category_role_and_truncated_content(self, note):
        event = build_event(note, "Asia/Taipei")
        assert event.summary == "[工作] Lead-Quarterly planning w..."

    def test_summary_without_role(self, note):
        note.role = ""
        assert build_event(note, "Asia/Taipei").summary.startswith("[工作] Quarterly")

    def test_times_and_zone(self, note):
        body = build_event(note, "Asia/Taipei").to_api()
        assert body["start"] == {"dateTime": "2024-05-01T09:00:00", "timeZone": "Asia/Taipei"}
        assert body["end"] == {"dateTime": "2024-05-01T10:30:00", "timeZone": "Asia/Taipei"}
        assert body["description"] == note.content
        assert "recurrence" not in body

    def test_recurrence_included_when_set(self, note):
        body = build_event(note, "Asia/Taipei", "DAILY").to_api()
        assert body["recurrence"] == ["RRULE:FREQ=DAILY"]
