"""Comma and tab separated text parser."""

import csv
import io
import os

from ..types import PlateFile, Table


def decode_text(content: bytes, filename: str) -> str:
    """Decode UTF-8 text, tolerating a byte order mark."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValueError(f"{filename} is not UTF-8 encoded text")


def read_delimited_text(text: str, delimiter: str = ",") -> Table:
    """Parse delimited text into rows; empty fields become None."""
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    table = [[value if value != "" else None for value in row] for row in reader]
    while table and not any(v is not None for v in table[-1]):
        table.pop()
    return table


def read_delimited_bytes(content: bytes, filename: str) -> PlateFile:
    """Read a .csv or .tsv file as a single-sheet PlateFile."""
    is_tsv = filename.lower().endswith(".tsv")
    text = decode_text(content, filename)
    try:
        table = read_delimited_text(text, "\t" if is_tsv else ",")
    except csv.Error as e:
        raise ValueError(f"CSV parsing error: {e}")

    stem = os.path.splitext(os.path.basename(filename))[0]
    return PlateFile(
        name=filename,
        sheets=[table],
        sheet_names=[stem],
        source_format="tsv" if is_tsv else "csv",
    )


def read_delimited_file(file_path: str, filename: str | None = None) -> PlateFile:
    """Read a .csv or .tsv file from disk."""
    if filename is None:
        filename = os.path.basename(file_path)
    with open(file_path, "rb") as f:
        return read_delimited_bytes(f.read(), filename)
