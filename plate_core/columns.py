"""Spreadsheet column naming helpers."""

from .types import Cell

MAX_COLUMN_OPTIONS = 50
MAX_LABEL_LENGTH = 30
PLACEHOLDER_COLUMNS = 26  # A-Z when no file is loaded


def column_letter(index: int) -> str:
    """Convert a zero-based column index to its letter name (0=A, 25=Z, 26=AA)."""
    name = ""
    num = index + 1
    while num > 0:
        mod = (num - 1) % 26
        name = chr(ord("A") + mod) + name
        num = (num - 1) // 26
    return name


def display_name(header: Cell, index: int) -> str:
    """Header text, or the column letter when the header is blank."""
    text = "" if header is None else str(header).strip()
    return text if text else column_letter(index)


def column_label(header: str, index: int, truncate: bool = True) -> str:
    """Label for the column picker.

    'Column J' when the header fell back to its letter, otherwise
    'Concentration (J)' with long headers truncated.
    """
    letter = column_letter(index)
    if header == letter:
        return f"Column {letter}"

    if truncate and len(header) > MAX_LABEL_LENGTH:
        header = f"{header[:MAX_LABEL_LENGTH - 3]}..."
    return f"{header} ({letter})"


def column_options(headers: list[str], limit: int = MAX_COLUMN_OPTIONS) -> list[tuple[int, str]]:
    """(index, label) pairs for the column picker.

    With no headers, offers placeholder columns A-Z.
    """
    if not headers:
        headers = [column_letter(i) for i in range(PLACEHOLDER_COLUMNS)]
    return [(i, column_label(headers[i], i)) for i in range(min(len(headers), limit))]
