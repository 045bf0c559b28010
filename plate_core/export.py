"""Export the merged plate as a 96-row table (CSV or Excel)."""

import io
from datetime import date, datetime

import polars as pl
from openpyxl import Workbook

from .merge import MergeResult
from .types import GRID_SIZE, Cell, PlateFile, Row
from .wells import ALL_WELLS, well_to_index

EXPORT_FORMATS = ("xlsx", "csv")


def build_export_table(files: list[PlateFile], result: MergeResult) -> list[Row]:
    """Header row followed by exactly 96 well rows (A1, B1, ..., H12).

    Every well row starts with its well name and empty cells; wells that
    received a record are overwritten with the padded values and the source
    file name.
    """
    header = result.export_header
    table = [header]
    for well in ALL_WELLS:
        row = [""] * len(header)
        row[0] = well
        table.append(row)

    starts = {f.file_id: well_to_index(f.start_well) for f in files}
    for record in result.records:
        start = starts.get(record.file_id)
        if start is None:
            continue
        target = start + record.sequential_index
        if 0 <= target < GRID_SIZE:
            table[target + 1] = [ALL_WELLS[target], *record.values, record.file_name]

    return table


def cell_text(value: Cell) -> str:
    """Render a cell as text for CSV output and the preview grid."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def unique_columns(header: Row) -> list[str]:
    """Column names safe for a DataFrame: blanks get a name, duplicates a suffix."""
    names = []
    seen: dict[str, int] = {}
    for i, value in enumerate(header):
        name = cell_text(value).strip() or f"column_{i}"
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 0
        names.append(name)
    return names


def export_frame(files: list[PlateFile], result: MergeResult) -> pl.DataFrame:
    """The export table as a string-typed DataFrame (one row per well)."""
    table = build_export_table(files, result)
    columns = unique_columns(table[0])
    rows = [[cell_text(v) for v in row] for row in table[1:]]
    return pl.DataFrame(rows, schema={name: pl.String for name in columns}, orient="row")


def export_csv(files: list[PlateFile], result: MergeResult) -> bytes:
    """Export table as CSV bytes, header row as written by the first file."""
    table = build_export_table(files, result)
    schema = {f"c{i}": pl.String for i in range(len(table[0]))}
    rows = [[cell_text(v) for v in row] for row in table]
    df = pl.DataFrame(rows, schema=schema, orient="row")
    return df.write_csv(include_header=False).encode("utf-8")


def export_xlsx(files: list[PlateFile], result: MergeResult) -> bytes:
    """Export table as an Excel workbook with a single sheet."""
    table = build_export_table(files, result)

    wb = Workbook()
    ws = wb.active
    ws.title = f"Sheet{result.sheet_index + 1}_Concatenated"
    for row in table:
        ws.append([None if v == "" else v for v in row])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export_filename(sheet_index: int, fmt: str = "xlsx") -> str:
    """Download name, e.g. full_sheet2_concatenated_data_96wells.xlsx."""
    return f"full_sheet{sheet_index + 1}_concatenated_data_96wells.{fmt}"
