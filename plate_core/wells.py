"""Well position utilities for a 96-well plate.

Wells are filled column by column: A1=0, B1=1, ..., H1=7, A2=8, ..., H12=95.
"""

from .types import GRID_COLS, GRID_ROWS, GRID_SIZE, ROW_LABELS


def _parse_well(well: str | None) -> tuple[int, int] | None:
    """Split a well name into zero-based (row, column), or None if invalid."""
    if not well or not isinstance(well, str):
        return None
    well = well.strip()
    if len(well) < 2:
        return None

    row = ROW_LABELS.find(well[0].upper())
    digits = well[1:]
    if row < 0 or not digits.isdigit():
        return None

    col = int(digits) - 1
    if col < 0 or col >= GRID_COLS:
        return None
    return row, col


def well_to_index(well: str | None) -> int:
    """Convert a well name (e.g. 'C4') to its column-major index (0-95).

    Anything that is not a valid well maps to 0 (A1).
    """
    parsed = _parse_well(well)
    if parsed is None:
        return 0
    row, col = parsed
    return col * GRID_ROWS + row


def index_to_well(index: int) -> str | None:
    """Convert a column-major index (0-95) back to a well name, or None."""
    if index < 0 or index >= GRID_SIZE:
        return None
    col, row = divmod(index, GRID_ROWS)
    return f"{ROW_LABELS[row]}{col + 1}"


def is_valid_well(well: str | None) -> bool:
    """Strict check, for callers that must reject rather than fall back."""
    return _parse_well(well) is not None


def normalize_well(well: str | None) -> str:
    """Canonical upper-case name for a well ('c4' -> 'C4', invalid -> 'A1')."""
    return index_to_well(well_to_index(well))


ALL_WELLS = [index_to_well(i) for i in range(GRID_SIZE)]
