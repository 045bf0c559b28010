"""Merge uploaded files into an export table and a 96-well preview.

The merge runs over files whose placements are already resolved (see
``placement.resolve_placements``). It never reorders values: rows and
columns always keep their source order and capping takes a prefix.

Header policy: the export header comes from the first file in the list,
padded to the widest header across all files. Headers of later files are
not consulted.
"""

import logging
from dataclasses import dataclass, field

from .columns import column_label, column_letter, display_name
from .types import GRID_COLS, GRID_ROWS, GRID_SIZE, Cell, PlateFile, Row, data_rows
from .wells import well_to_index

logger = logging.getLogger(__name__)

WELL_POSITION_HEADER = "Well Position"
SOURCE_FILE_HEADER = "Source File"

# Diagnostic kinds
OUT_OF_RANGE = "out_of_range"
NO_DATA = "no_data"
OVERFLOW = "overflow"
MISSING_SHEET = "missing_sheet"


@dataclass
class Diagnostic:
    """User-facing, non-blocking message about a merge."""

    kind: str
    message: str
    blocking_preview: bool = False  # Replaces the preview grid when shown


@dataclass
class ExportRecord:
    """One kept data row of a file, padded to the universal width."""

    values: Row
    file_id: str
    file_name: str
    file_index: int  # Position of the owning file in the list
    sequential_index: int  # Position within the file's kept rows


@dataclass
class PreviewCell:
    """One well of the preview grid."""

    value: Cell = ""
    source_file_id: str | None = None
    file_index: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.value is None or self.value == ""


@dataclass
class MergeResult:
    """Everything derived from one merge pass."""

    sheet_index: int
    column_index: int
    universal_width: int = 0
    header: Row = field(default_factory=list)  # Padded first-file header
    column_headers: list[str] = field(default_factory=list)  # Display names
    records: list[ExportRecord] = field(default_factory=list)
    grid: list[PreviewCell] = field(default_factory=list)  # 96 cells, column-major
    total_samples: int = 0  # Uncapped data rows across files with data
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def export_header(self) -> Row:
        return [WELL_POSITION_HEADER, *self.header, SOURCE_FILE_HEADER]

    @property
    def populated_cells(self) -> int:
        return sum(1 for cell in self.grid if not cell.is_empty)

    @property
    def has_preview(self) -> bool:
        """False when there is nothing to show or a diagnostic replaces the grid."""
        if not self.grid:
            return False
        return not any(d.blocking_preview for d in self.diagnostics)

    def preview_rows(self) -> list[list[PreviewCell]]:
        """The grid as 8 rows (A-H) of 12 columns."""
        if not self.grid:
            return []
        return [
            [self.grid[col * GRID_ROWS + row] for col in range(GRID_COLS)]
            for row in range(GRID_ROWS)
        ]

    def diagnostic(self, kind: str) -> Diagnostic | None:
        return next((d for d in self.diagnostics if d.kind == kind), None)


def universal_width(files: list[PlateFile], sheet_index: int) -> int:
    """Widest header row across files that have the sheet."""
    width = 0
    for file in files:
        header = file.header(sheet_index)
        if header is not None:
            width = max(width, len(header))
    return width


def pad_row(row: Row, width: int) -> Row:
    """Copy of ``row`` fitted to ``width``: extra cells dropped, short rows padded with ""."""
    padded = ["" if value is None else value for value in row[:width]]
    padded.extend([""] * (width - len(padded)))
    return padded


def kept_rows(file: PlateFile, sheet_index: int) -> list[Row]:
    """Non-empty data rows of a file, capped to its placement length."""
    return data_rows(file.sheet(sheet_index))[: file.capped_length(sheet_index)]


def column_display(column_headers: list[str], column_index: int) -> str:
    """'Column J' or 'Concentration (J)' for messages."""
    if column_index < len(column_headers):
        header = column_headers[column_index]
    else:
        header = column_letter(column_index)
    return column_label(header, column_index, truncate=False)


def _export_records(files: list[PlateFile], sheet_index: int, width: int) -> list[ExportRecord]:
    records = []
    for file_index, file in enumerate(files):
        for seq, row in enumerate(kept_rows(file, sheet_index)):
            records.append(
                ExportRecord(
                    values=pad_row(row, width),
                    file_id=file.file_id,
                    file_name=file.name,
                    file_index=file_index,
                    sequential_index=seq,
                )
            )
    return records


def _preview_grid(files: list[PlateFile], sheet_index: int, column_index: int) -> list[PreviewCell]:
    grid = [PreviewCell() for _ in range(GRID_SIZE)]
    for file_index, file in enumerate(files):
        start = well_to_index(file.start_well)
        for i, row in enumerate(kept_rows(file, sheet_index)):
            target = start + i
            if target >= GRID_SIZE:
                break
            value = row[column_index] if column_index < len(row) else ""
            grid[target] = PreviewCell(
                value="" if value is None else value,
                source_file_id=file.file_id,
                file_index=file_index,
            )
    return grid


def merge_files(files: list[PlateFile], sheet_index: int, column_index: int) -> MergeResult:
    """Build the export records and the preview grid for the active sheet.

    Args:
        files: Files in placement order, with resolved start wells
        sheet_index: Active sheet (zero-based), shared by all files
        column_index: Preview column (zero-based), shared by all files

    Returns:
        MergeResult; empty when no files are loaded
    """
    result = MergeResult(sheet_index=sheet_index, column_index=column_index)
    if not files:
        return result

    sheet_label = f"Sheet {sheet_index + 1}"
    width = universal_width(files, sheet_index)

    first_header = files[0].header(sheet_index)
    if first_header is None:
        logger.error(f"First file {files[0].name} is missing {sheet_label} data")
        result.diagnostics.append(
            Diagnostic(
                kind=MISSING_SHEET,
                message=f"The first file ({files[0].name}) has no data in {sheet_label}.",
                blocking_preview=True,
            )
        )
        return result

    result.universal_width = width
    result.header = pad_row(first_header, width)
    result.column_headers = [display_name(h, i) for i, h in enumerate(result.header)]

    # Export and preview are derived separately from the same kept rows
    result.records = _export_records(files, sheet_index, width)
    result.grid = _preview_grid(files, sheet_index, column_index)

    result.total_samples = sum(
        f.data_row_count(sheet_index) for f in files if len(f.sheet(sheet_index) or []) > 1
    )

    if result.populated_cells == 0:
        result.diagnostics.append(
            _diagnose_empty_preview(files, sheet_index, column_index, result.column_headers)
        )

    if result.total_samples > GRID_SIZE:
        result.diagnostics.append(
            Diagnostic(
                kind=OVERFLOW,
                message=(
                    f"Total number of samples across all files in {sheet_label} is "
                    f"{result.total_samples}. Only the first {GRID_SIZE} samples will be "
                    f"displayed/included in the final {GRID_SIZE}-well grid."
                ),
            )
        )

    return result


def _diagnose_empty_preview(
    files: list[PlateFile],
    sheet_index: int,
    column_index: int,
    column_headers: list[str],
) -> Diagnostic:
    """Tell apart a column that no file has from a column with no values."""
    sheet_label = f"Sheet {sheet_index + 1}"
    column = column_display(column_headers, column_index)

    in_range = False
    for file in files:
        header = file.header(sheet_index)
        if header is not None and len(header) > column_index:
            in_range = True
            break

    if not in_range:
        return Diagnostic(
            kind=OUT_OF_RANGE,
            message=f"Selected {column} is out of range for all files in {sheet_label}.",
            blocking_preview=True,
        )
    return Diagnostic(
        kind=NO_DATA,
        message=f"No data found in {column} ({sheet_label}) after processing.",
        blocking_preview=True,
    )
