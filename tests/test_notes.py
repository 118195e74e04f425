"""Tests for the note row codec and id index."""

import pytest

from notekeeper.core.notes import (
    Category,
    Note,
    NoteIndex,
    Role,
    notes_from_rows,
    parse_target,
)


@pytest.fixture
def rows():
    return [
        ["n1", "2024-05-01", "工作", "standup", "Engineer", "09:00", "09:30", "evt-1"],
        ["n2", "2024-05-02", "學習", "read a chapter"],
        ["n3", "2024-05-03", "生活", "groceries", "", "", "", ""],
    ]


class TestNoteRows:
    def test_row_index_includes_header_offset(self, rows):
        notes = notes_from_rows(rows)
        assert [n.row_index for n in notes] == [2, 3, 4]

    def test_short_rows_are_padded(self, rows):
        note = notes_from_rows(rows)[1]
        assert note.role == ""
        assert note.start_time == ""
        assert note.event_id == ""

    def test_row_round_trip_keeps_column_order(self, rows):
        note = Note.from_row(rows[0], 2)
        assert note.to_row() == rows[0]

    def test_calendar_eligibility_needs_both_times(self):
        assert Note("a", "2024-05-01", "c", "x", start_time="09:00", end_time="10:00").is_calendar_eligible
        assert not Note("a", "2024-05-01", "c", "x", start_time="09:00").is_calendar_eligible
        assert not Note("a", "2024-05-01", "c", "x").is_calendar_eligible

    def test_to_api_uses_camel_case(self, rows):
        data = Note.from_row(rows[0], 2).to_api()
        assert data["rowIndex"] == 2
        assert data["startTime"] == "09:00"
        assert data["eventId"] == "evt-1"

    def test_from_api_treats_none_as_blank(self):
        note = Note.from_api({"id": "x", "date": "2024-05-01", "category": "c", "content": "", "role": None})
        assert note.role == ""
        assert note.event_id == ""


class TestCatalogs:
    def test_category_target_parsed(self):
        assert Category.from_row(["工作", "#ffadad", "20"]).target == 20

    def test_category_target_defaults_to_10(self):
        assert Category.from_row(["工作", "#ffadad"]).target == 10
        assert Category.from_row(["工作", "#ffadad", "lots"]).target == 10

    def test_role_defaults(self):
        role = Role.from_row(["Parent"])
        assert role.target == 5
        assert role.description == ""

    def test_role_description(self):
        role = Role.from_row(["Parent", "8", "Time with kids"])
        assert role.target == 8
        assert role.description == "Time with kids"

    @pytest.mark.parametrize(
        "raw,expected",
        [("12", 12), ("12 notes", 12), ("", 7), (None, 7), ("0", 7), ("-3", 7), (15, 15)],
    )
    def test_parse_target(self, raw, expected):
        assert parse_target(raw, 7) == expected


class TestNoteIndex:
    def test_resolve_by_row_when_id_matches(self, rows):
        index = NoteIndex(notes_from_rows(rows))
        assert index.resolve(3, "n2").id == "n2"

    def test_resolve_by_row_without_id(self, rows):
        index = NoteIndex(notes_from_rows(rows))
        assert index.resolve(4).id == "n3"

    def test_resolve_follows_id_after_shift(self, rows):
        # n1 was removed after the client last read: n2 is now at row 2
        index = NoteIndex(notes_from_rows(rows[1:]))
        note = index.resolve(3, "n2")
        assert note.id == "n2"
        assert note.row_index == 2

    def test_resolve_unknown(self, rows):
        index = NoteIndex(notes_from_rows(rows))
        assert index.resolve(9) is None
        assert index.resolve(2, "missing") is None

    def test_len(self, rows):
        assert len(NoteIndex(notes_from_rows(rows))) == 3
