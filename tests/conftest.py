import io

import pytest
from openpyxl import Workbook

from plate_core import PlateFile


def build_table(rows: int, width: int = 3, prefix: str = "v") -> list[list]:
    """Header plus ``rows`` data rows; cell values encode row and column."""
    header = [f"H{c}" for c in range(width)]
    data = [[f"{prefix}{r}_{c}" for c in range(width)] for r in range(rows)]
    return [header, *data]


@pytest.fixture
def make_file():
    """Factory for PlateFile objects with a single populated sheet."""

    def _make(name="file.xlsx", rows=5, width=3, start_well="A1", sheet_index=0, table=None):
        if table is None:
            table = build_table(rows, width, prefix=f"{name}:")
        sheets = [[] for _ in range(sheet_index)] + [table]
        return PlateFile(name=name, sheets=sheets, start_well=start_well)

    return _make


@pytest.fixture
def xlsx_bytes():
    """Factory for an in-memory workbook from {sheet title: rows}."""

    def _make(sheets: dict) -> bytes:
        wb = Workbook()
        wb.remove(wb.active)
        for title, rows in sheets.items():
            ws = wb.create_sheet(title)
            for row in rows:
                ws.append(row)
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return _make
