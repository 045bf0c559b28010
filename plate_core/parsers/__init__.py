"""Parsers for spreadsheet file formats."""

import logging

from ..types import PlateFile
from .delimited import read_delimited_bytes, read_delimited_file
from .xlsx import read_xlsx_bytes, read_xlsx_file

logger = logging.getLogger(__name__)

XLSX_EXTENSIONS = (".xlsx", ".xlsm")
DELIMITED_EXTENSIONS = (".csv", ".tsv")
SUPPORTED_EXTENSIONS = XLSX_EXTENSIONS + DELIMITED_EXTENSIONS


def load_file(file_path: str) -> PlateFile:
    """Load a spreadsheet, auto-detecting format by extension.

    Supported formats:
    - .xlsx, .xlsm: Excel workbook (all worksheets)
    - .csv, .tsv: delimited text (single sheet)

    Args:
        file_path: Path to the file

    Returns:
        PlateFile holding every sheet as a table of rows

    Raises:
        ValueError: If file format is not supported
    """
    lower_path = file_path.lower()

    if lower_path.endswith(XLSX_EXTENSIONS):
        return read_xlsx_file(file_path)
    elif lower_path.endswith(DELIMITED_EXTENSIONS):
        return read_delimited_file(file_path)
    else:
        raise ValueError(f"Unsupported file format: {file_path}")


def load_file_bytes(content: bytes, filename: str) -> PlateFile:
    """Load a spreadsheet from bytes, auto-detecting format.

    Args:
        content: File contents as bytes
        filename: Original filename (used for format detection and display)

    Returns:
        PlateFile holding every sheet as a table of rows

    Raises:
        ValueError: If file format is not supported
    """
    lower_name = filename.lower()

    if lower_name.endswith(XLSX_EXTENSIONS):
        return read_xlsx_bytes(content, filename)
    elif lower_name.endswith(DELIMITED_EXTENSIONS):
        return read_delimited_bytes(content, filename)
    else:
        raise ValueError(f"Unsupported file format: {filename}")


def parse_batch(uploads: list[tuple[str, bytes]]) -> tuple[list[PlateFile], list[str]]:
    """Parse a batch of uploads, keeping going past individual failures.

    Args:
        uploads: (filename, content) pairs in upload order

    Returns:
        Tuple of (parsed files in upload order, "<filename>: <reason>" errors)
    """
    parsed = []
    errors = []
    for filename, content in uploads:
        try:
            parsed.append(load_file_bytes(content, filename))
        except Exception as e:
            logger.warning(f"Error processing file {filename}: {e}")
            errors.append(f"{filename}: {e}")
    return parsed, errors


__all__ = [
    "SUPPORTED_EXTENSIONS",
    "load_file",
    "load_file_bytes",
    "parse_batch",
    "read_xlsx_file",
    "read_xlsx_bytes",
    "read_delimited_file",
    "read_delimited_bytes",
]
