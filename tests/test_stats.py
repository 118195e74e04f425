"""Tests for monthly statistics."""

from datetime import date

from notekeeper.core.notes import Category, Note, Role
from notekeeper.core.stats import aggregate, category_stats, current_month, percentage, role_stats


def note(category="", role="", day="2024-05-01"):
    return Note(id=day, date=day, category=category, content="", role=role)


class TestAggregate:
    def test_counts_only_target_month(self):
        categories = [Category(name="工作", target=20)]
        notes = [note("工作", day="2024-05-01"), note("工作", day="2024-04-30")]

        [line] = category_stats(notes, categories, "2024-05")

        assert line.count == 1
        assert line.target == 20
        assert line.percentage == 5

    def test_percentage_capped_at_100(self):
        categories = [Category(name="運動", target=2)]
        notes = [note("運動", day=f"2024-05-0{d}") for d in range(1, 6)]

        [line] = category_stats(notes, categories, "2024-05")

        assert line.count == 5
        assert line.percentage == 100

    def test_one_line_per_catalog_entry_in_order(self):
        categories = [Category(name="A"), Category(name="B")]
        lines = category_stats([note("B")], categories, "2024-05")
        assert [(line.name, line.count) for line in lines] == [("A", 0), ("B", 1)]

    def test_notes_for_deleted_entries_are_ignored(self):
        lines = category_stats([note("Gone")], [Category(name="A")], "2024-05")
        assert lines[0].count == 0

    def test_roles_use_role_field(self):
        roles = [Role(name="Parent", target=4, description="kids")]
        notes = [note("工作", role="Parent"), note("工作", role="Engineer")]

        [line] = role_stats(notes, roles, "2024-05")

        assert line.count == 1
        assert line.percentage == 25
        assert line.description == "kids"

    def test_carries_category_color(self):
        [line] = aggregate([], [Category(name="A", color="#fff")], "2024-05")
        assert line.color == "#fff"
        assert line.format() == "A: 0/10 (0%)"


def test_percentage_zero_target():
    assert percentage(0, 0) == 0
    assert percentage(3, 0) == 100


def test_current_month():
    assert current_month(date(2024, 5, 17)) == "2024-05"
