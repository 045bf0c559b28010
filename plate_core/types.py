"""Data types for plate_core."""

import uuid
from dataclasses import dataclass, field, replace
from typing import Any

# 96-well plate geometry
GRID_ROWS = 8
GRID_COLS = 12
GRID_SIZE = GRID_ROWS * GRID_COLS  # 96
ROW_LABELS = "ABCDEFGH"

# A single cell as delivered by a parser: str, int, float, bool, datetime or None
Cell = Any
Row = list[Cell]
Table = list[Row]


def is_blank(value: Cell) -> bool:
    """True for None, empty strings and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def is_row_empty(row: Row) -> bool:
    """True when every cell of the row is blank (an empty row counts too)."""
    return all(is_blank(cell) for cell in row)


def data_rows(table: Table | None) -> Table:
    """Non-empty rows below the header, in source order."""
    if not table or len(table) <= 1:
        return []
    return [row for row in table[1:] if not is_row_empty(row)]


def new_file_id() -> str:
    """Short random identifier for an uploaded file."""
    return uuid.uuid4().hex[:9]


@dataclass
class PlateFile:
    """One uploaded spreadsheet.

    Holds the tables of every sheet so that switching the active sheet never
    requires parsing the file again. Row 0 of each table is the header row.
    """

    # Identity
    name: str  # Display name (original filename)
    sheets: list[Table]  # One table per sheet, in workbook order
    sheet_names: list[str] = field(default_factory=list)
    file_id: str = field(default_factory=new_file_id)

    # Requested, then resolved, start well
    start_well: str = "A1"

    # Provenance
    source_format: str | None = None  # 'xlsx', 'csv' or 'tsv'

    def sheet(self, sheet_index: int) -> Table | None:
        """Table for a sheet, or None if the workbook has no such sheet."""
        if 0 <= sheet_index < len(self.sheets):
            return self.sheets[sheet_index]
        return None

    def has_sheet(self, sheet_index: int) -> bool:
        return self.sheet(sheet_index) is not None

    def header(self, sheet_index: int) -> Row | None:
        """Header row of a sheet, or None when the sheet is missing or empty."""
        table = self.sheet(sheet_index)
        if not table:
            return None
        return table[0]

    def sheet_name(self, sheet_index: int) -> str:
        if 0 <= sheet_index < len(self.sheet_names):
            return self.sheet_names[sheet_index]
        if self.has_sheet(sheet_index):
            return f"Sheet {sheet_index + 1}"
        return f"Sheet {sheet_index + 1} (Missing)"

    def data_row_count(self, sheet_index: int) -> int:
        """Number of non-empty data rows in a sheet (uncapped)."""
        return len(data_rows(self.sheet(sheet_index)))

    def capped_length(self, sheet_index: int) -> int:
        """Number of wells this file needs: data rows, at most one plate."""
        return min(self.data_row_count(sheet_index), GRID_SIZE)

    def copy(self) -> "PlateFile":
        """Shallow copy; the sheet tables are shared, never mutated."""
        return replace(self)
