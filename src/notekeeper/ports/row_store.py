"""Row store interface."""

from typing import Protocol


class RowStore(Protocol):
    """Interface for a named table of fixed-width rows.

    Rows are 1-indexed with the header at row 1, so the first data row is
    row 2. Identity is positional: clearing a row shifts every later row up
    by one.
    """

    def read(self, table: str, start_row: int = 2) -> list[list[str]]:
        """Read rows from start_row to the end of the table."""
        ...

    def append(self, table: str, row: list[str]) -> None:
        """Append a row after the last one."""
        ...

    def update(self, table: str, row_index: int, row: list[str]) -> None:
        """Overwrite a whole row. Logs and returns if row_index is out of bounds."""
        ...

    def clear(self, table: str, row_index: int) -> None:
        """Remove a row, shifting later rows up. Logs and returns if out of bounds."""
        ...
