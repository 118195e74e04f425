"""Monthly progress statistics - pure functions, no I/O."""

from dataclasses import dataclass
from datetime import date

from .notes import Category, Note, Role


@dataclass
class StatLine:
    """Progress of one catalog entry against its monthly target."""

    name: str
    count: int
    target: int
    percentage: float
    color: str = ""
    description: str = ""

    def format(self) -> str:
        return f"{self.name}: {self.count}/{self.target} ({self.percentage:.0f}%)"

    def to_api(self) -> dict:
        return {
            "name": self.name,
            "count": self.count,
            "target": self.target,
            "percentage": self.percentage,
            "color": self.color,
            "description": self.description,
        }


def current_month(today: date | None = None) -> str:
    """Month key (YYYY-MM) for today."""
    return (today or date.today()).strftime("%Y-%m")


def notes_in_month(notes: list[Note], month: str) -> list[Note]:
    """Notes whose ISO date falls within the YYYY-MM month."""
    return [n for n in notes if n.date and n.date.startswith(month)]


def percentage(count: int, target: int) -> float:
    """Progress capped at 100."""
    if target <= 0:
        return 100.0 if count else 0.0
    return min(100.0, 100.0 * count / target)


def aggregate(
    notes: list[Note],
    catalog: list[Category] | list[Role],
    month: str,
    key: str = "category",
) -> list[StatLine]:
    """
    Count notes per catalog entry for a month.

    Pure function - no I/O.

    Args:
        notes: The full note set
        catalog: Categories or roles, in display order
        month: Target month as YYYY-MM
        key: Note attribute to match against entry names ("category" or "role")

    Returns:
        One StatLine per catalog entry, in catalog order
    """
    if key not in ("category", "role"):
        raise ValueError(f"Unknown statistics key: {key}")

    monthly = notes_in_month(notes, month)
    lines = []
    for entry in catalog:
        count = sum(1 for n in monthly if getattr(n, key) == entry.name)
        lines.append(
            StatLine(
                name=entry.name,
                count=count,
                target=entry.target,
                percentage=percentage(count, entry.target),
                color=getattr(entry, "color", ""),
                description=getattr(entry, "description", ""),
            )
        )
    return lines


def category_stats(notes: list[Note], categories: list[Category], month: str) -> list[StatLine]:
    return aggregate(notes, categories, month, key="category")


def role_stats(notes: list[Note], roles: list[Role], month: str) -> list[StatLine]:
    return aggregate(notes, roles, month, key="role")
