"""JSON-file row store for local development."""

import json
import logging
from pathlib import Path

from notekeeper.core.notes import FIRST_DATA_ROW
from notekeeper.errors import RemoteStoreError

logger = logging.getLogger(__name__)


class JsonFileRowStore:
    """
    File-based row store.

    Implements RowStore protocol. The file maps each table name to its list of
    rows, header row included, so row N lives at list index N - 1.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, list[list[str]]]:
        if not self.path.exists():
            logger.warning(f"{self.path} does not exist, treating it as empty")
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"{self.path} is not valid JSON: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"{self.path} does not hold a table mapping")
            return {}
        return data

    def _save(self, data: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise RemoteStoreError(f"Failed to write {self.path}: {e}") from e

    def read(self, table: str, start_row: int = FIRST_DATA_ROW) -> list[list[str]]:
        """Read rows from start_row to the end of the table."""
        rows = self._load().get(table, [])
        data = [list(r) for r in rows[max(start_row, 1) - 1 :]]
        logger.debug(f"[LocalDB] Read {len(data)} rows from {table}")
        return data

    def append(self, table: str, row: list[str]) -> None:
        """Append a row after the last one."""
        data = self._load()
        data.setdefault(table, []).append(list(row))
        self._save(data)
        logger.info(f"[LocalDB] Appended to {table}: {row[0] if row else ''}")

    def _in_bounds(self, rows: list, row_index: int) -> bool:
        return FIRST_DATA_ROW <= row_index <= len(rows)

    def update(self, table: str, row_index: int, row: list[str]) -> None:
        """Overwrite a whole row. Logs and returns if row_index is out of bounds."""
        data = self._load()
        rows = data.get(table, [])
        if not self._in_bounds(rows, row_index):
            logger.warning(f"[LocalDB] Row {row_index} not found in {table}")
            return
        rows[row_index - 1] = list(row)
        self._save(data)
        logger.info(f"[LocalDB] Updated row {row_index} in {table}")

    def clear(self, table: str, row_index: int) -> None:
        """Remove a row, shifting later rows up. Logs and returns if out of bounds."""
        data = self._load()
        rows = data.get(table, [])
        if not self._in_bounds(rows, row_index):
            logger.warning(f"[LocalDB] Row {row_index} not found in {table}")
            return
        deleted = rows.pop(row_index - 1)
        self._save(data)
        logger.info(f"[LocalDB] Deleted row {row_index} from {table}: {deleted[0] if deleted else ''}")

    def seed(self, tables: dict[str, list[list[str]]]) -> None:
        """Create any missing tables with the given header (and optional data) rows."""
        data = self._load()
        changed = False
        for table, rows in tables.items():
            if table not in data:
                data[table] = [list(r) for r in rows]
                changed = True
        if changed or not self.path.exists():
            self._save(data)
