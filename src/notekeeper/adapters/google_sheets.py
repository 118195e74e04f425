"""Google Sheets API adapter - the spreadsheet is the database."""

import logging

from notekeeper.core.notes import FIRST_DATA_ROW
from notekeeper.errors import RemoteStoreError

from .google_auth import build_service

logger = logging.getLogger(__name__)


def column_letter(n: int) -> str:
    """1 -> A, 26 -> Z, 27 -> AA."""
    letters = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


class GoogleSheetsRowStore:
    """
    Row store backed by one Google spreadsheet, one sheet per table.

    Implements RowStore protocol. No business logic - just I/O.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        credentials_file: str = "credentials.json",
        last_column: str = "Z",
        service=None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.credentials_file = credentials_file
        self.last_column = last_column
        self._service = service
        self._sheet_ids: dict[str, int] = {}

    def _build_service(self):
        """Build the Sheets API service on first use."""
        if self._service is None:
            self._service = build_service("sheets", "v4", self.credentials_file)
        return self._service

    def _values(self):
        return self._build_service().spreadsheets().values()

    def _get(self, range_: str) -> list[list[str]]:
        try:
            result = self._values().get(spreadsheetId=self.spreadsheet_id, range=range_).execute()
        except Exception as e:
            raise RemoteStoreError(f"Failed to read {range_}: {e}") from e
        return result.get("values", [])

    def _row_count(self, table: str) -> int:
        """Number of rows in the table, header included."""
        return len(self._get(f"{table}!A1:{self.last_column}"))

    def _sheet_id(self, table: str) -> int:
        if table not in self._sheet_ids:
            try:
                result = (
                    self._build_service()
                    .spreadsheets()
                    .get(spreadsheetId=self.spreadsheet_id, fields="sheets.properties")
                    .execute()
                )
            except Exception as e:
                raise RemoteStoreError(f"Failed to read spreadsheet metadata: {e}") from e
            for sheet in result.get("sheets", []):
                props = sheet.get("properties", {})
                self._sheet_ids[props.get("title", "")] = props.get("sheetId", 0)
        if table not in self._sheet_ids:
            raise RemoteStoreError(f"Sheet '{table}' not found in spreadsheet")
        return self._sheet_ids[table]

    def read(self, table: str, start_row: int = FIRST_DATA_ROW) -> list[list[str]]:
        """Read rows from start_row to the end of the table."""
        rows = self._get(f"{table}!A{start_row}:{self.last_column}")
        logger.debug(f"Read {len(rows)} rows from {table}")
        return rows

    def append(self, table: str, row: list[str]) -> None:
        """Append a row after the last one."""
        try:
            self._values().append(
                spreadsheetId=self.spreadsheet_id,
                range=f"{table}!A:{column_letter(len(row))}",
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": [row]},
            ).execute()
        except Exception as e:
            raise RemoteStoreError(f"Failed to append to {table}: {e}") from e
        logger.info(f"Appended to {table}: {row[0] if row else ''}")

    def update(self, table: str, row_index: int, row: list[str]) -> None:
        """Overwrite a whole row. Logs and returns if row_index is out of bounds."""
        if not FIRST_DATA_ROW <= row_index <= self._row_count(table):
            logger.warning(f"Row {row_index} not found in {table}")
            return

        end = column_letter(len(row))
        try:
            self._values().update(
                spreadsheetId=self.spreadsheet_id,
                range=f"{table}!A{row_index}:{end}{row_index}",
                valueInputOption="RAW",
                body={"values": [row]},
            ).execute()
        except Exception as e:
            raise RemoteStoreError(f"Failed to update row {row_index} in {table}: {e}") from e
        logger.info(f"Updated row {row_index} in {table}")

    def clear(self, table: str, row_index: int) -> None:
        """Remove a row, shifting later rows up. Logs and returns if out of bounds."""
        if not FIRST_DATA_ROW <= row_index <= self._row_count(table):
            logger.warning(f"Row {row_index} not found in {table}")
            return

        sheet_id = self._sheet_id(table)
        request = {
            "deleteDimension": {
                "range": {
                    "sheetId": sheet_id,
                    "dimension": "ROWS",
                    "startIndex": row_index - 1,
                    "endIndex": row_index,
                }
            }
        }
        try:
            (
                self._build_service()
                .spreadsheets()
                .batchUpdate(spreadsheetId=self.spreadsheet_id, body={"requests": [request]})
                .execute()
            )
        except Exception as e:
            raise RemoteStoreError(f"Failed to delete row {row_index} from {table}: {e}") from e
        logger.info(f"Deleted row {row_index} from {table}")
