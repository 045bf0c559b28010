"""Excel workbook parser (.xlsx / .xlsm) built on openpyxl."""

import io
import os

from openpyxl import load_workbook

from ..types import PlateFile, Row, Table, is_row_empty


def trim_row(values: tuple) -> Row:
    """Drop trailing empty cells so a row ends at its last value."""
    row = list(values)
    while row and (row[-1] is None or row[-1] == ""):
        row.pop()
    return row


def trim_table(rows: list[Row]) -> Table:
    """Drop trailing empty rows below the last row with data."""
    while rows and is_row_empty(rows[-1]):
        rows.pop()
    return rows


def read_workbook(source, filename: str) -> PlateFile:
    """Read every worksheet of a workbook into a PlateFile.

    Args:
        source: Path or binary file object
        filename: Original filename (display name)

    Returns:
        PlateFile with one table per worksheet, cached values for formulas
    """
    wb = load_workbook(source, read_only=True, data_only=True)
    try:
        sheets = []
        names = []
        for ws in wb.worksheets:
            rows = []
            for values in ws.iter_rows(values_only=True):
                # Header keeps its blank trailing cells; they still count toward the width
                rows.append(list(values) if not rows else trim_row(values))
            sheets.append(trim_table(rows))
            names.append(ws.title)
    finally:
        wb.close()

    return PlateFile(
        name=filename,
        sheets=sheets,
        sheet_names=names,
        source_format="xlsx",
    )


def read_xlsx_file(file_path: str, filename: str | None = None) -> PlateFile:
    """Read an Excel workbook from disk."""
    if filename is None:
        filename = os.path.basename(file_path)
    return read_workbook(file_path, filename)


def read_xlsx_bytes(content: bytes, filename: str) -> PlateFile:
    """Read an Excel workbook from bytes."""
    return read_workbook(io.BytesIO(content), filename)
